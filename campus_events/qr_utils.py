"""
QR code helpers: check-in, certificate verification and team-join codes.

Check-in payloads are a small JSON document; certificate and team codes carry
a bare URL. None of them is signed, so a payload only proves that somebody
knew its fields; the check-in validation keeps the three checks (type, event,
freshness) and nothing more.
"""

import base64
import io
import json
import time

import qrcode
from PIL import Image
from qrcode.constants import ERROR_CORRECT_H, ERROR_CORRECT_M

from campus_events import config

CHECKIN_TYPE = "event-checkin"


def _now_ms():
    return int(time.time() * 1000)


def render_qr(data, error_correction=ERROR_CORRECT_M, border=1, size=None,
              fill_color="#000000", back_color="#FFFFFF"):
    """
    Renders ``data`` into a PNG QR image.

    :return: a tuple (PNG bytes, ``data:image/png;base64,...`` URL).
    """
    qr = qrcode.QRCode(error_correction=error_correction, border=border, box_size=10)
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color=fill_color, back_color=back_color).convert("RGB")

    target = size or config.QR_CODE_SIZE
    img = img.resize((target, target), Image.Resampling.NEAREST)

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    png = buffer.getvalue()
    return png, "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def generate_checkin_qr(registration_id, event_id, timestamp=None):
    payload = {
        "type": CHECKIN_TYPE,
        "registrationId": str(registration_id),
        "eventId": str(event_id),
        "timestamp": timestamp if timestamp is not None else _now_ms(),
    }
    code = json.dumps(payload)
    _, data_url = render_qr(code)
    return {"code": code, "data_url": data_url, "data": payload}


def certificate_verification_url(verification_code):
    return f"{config.FRONTEND_URL.rstrip('/')}/verify-certificate/{verification_code}"


def generate_certificate_qr(verification_code, size=150):
    url = certificate_verification_url(verification_code)
    png, data_url = render_qr(url, error_correction=ERROR_CORRECT_H, border=2, size=size,
                              fill_color="#1f2937")
    return {"code": url, "png": png, "data_url": data_url}


def team_join_url(team_code):
    return f"{config.FRONTEND_URL.rstrip('/')}/join-team/{team_code}"


def generate_team_qr(team_code):
    url = team_join_url(team_code)
    _, data_url = render_qr(url, size=180, fill_color="#059669")
    return {"code": url, "data_url": data_url}


def parse_qr_data(raw):
    """
    Decodes a scanned QR string: JSON first, otherwise the raw string is taken as a URL.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        return {"success": True, "data": {"url": raw}, "type": "url"}
    if not isinstance(data, dict):
        return {"success": False, "data": None, "type": "unknown"}
    return {"success": True, "data": data, "type": data.get("type", "unknown")}


def validate_checkin_qr(qr_data, expected_event_id, now_ms=None):
    """
    Checks, in order, the payload type, the event id and the age of a check-in payload.

    Never raises; the result is ``{"valid": False, "message", "reason"}`` or
    ``{"valid": True, "registration_id", "event_id"}``.
    """
    if not isinstance(qr_data, dict):
        return {"valid": False, "message": "Invalid QR code format", "reason": "qr_invalid_format"}

    if qr_data.get("type") != CHECKIN_TYPE:
        return {"valid": False, "message": "Invalid QR code type for check-in", "reason": "qr_invalid_type"}

    if str(qr_data.get("eventId")) != str(expected_event_id):
        return {"valid": False, "message": "QR code is for a different event", "reason": "qr_wrong_event"}

    timestamp = qr_data.get("timestamp")
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        return {"valid": False, "message": "Invalid QR code format", "reason": "qr_invalid_format"}

    max_age_ms = config.CHECKIN_QR_MAX_AGE_HOURS * 60 * 60 * 1000
    age = (now_ms if now_ms is not None else _now_ms()) - timestamp
    if age > max_age_ms:
        return {"valid": False, "message": "QR code has expired", "reason": "qr_expired"}

    return {
        "valid": True,
        "registration_id": str(qr_data.get("registrationId")),
        "event_id": str(qr_data.get("eventId")),
    }
