# -*- coding: utf-8 -*-
"""
Application settings, read from the environment and an optional .env file.
"""

from starlette.config import Config

config = Config(".env")

ENVIRONMENT = config("ENVIRONMENT", default="development")

DATABASE_URL = config("DATABASE_URL", default="sqlite:///./database/campus_events.db")

SECRET_KEY = config("SECRET_KEY", default="change-me-in-production-3f9c1a7e5b2d4c8e")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = config("ACCESS_TOKEN_EXPIRE_MINUTES", cast=int, default=60 * 24 * 7)

FRONTEND_URL = config("FRONTEND_URL", default="http://localhost:3000")

CERTIFICATES_DIR = config("CERTIFICATES_DIR", default="./uploads/certificates")
QR_CODE_SIZE = config("QR_CODE_SIZE", cast=int, default=200)
CHECKIN_QR_MAX_AGE_HOURS = config("CHECKIN_QR_MAX_AGE_HOURS", cast=int, default=24)

FIRST_ADMIN_EMAIL = config("FIRST_ADMIN_EMAIL", default="admin@campus-events.local")
FIRST_ADMIN_PASSWORD = config("FIRST_ADMIN_PASSWORD", default="admin123")

LOG_LEVEL = config("LOG_LEVEL", default="INFO")
LOG_FILE = config("LOG_FILE", default=None)
