"""Generated public identifiers: team codes, certificate ids and verification codes."""

import secrets
import string
import time

ALPHANUMERIC = string.ascii_uppercase + string.digits
_BASE36 = string.digits + string.ascii_lowercase


def base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def _timestamp36() -> str:
    return base36(int(time.time() * 1000))


def new_team_code() -> str:
    """``TEAM-`` + base36 time + random hex, uppercased."""
    return f"TEAM-{_timestamp36()}{secrets.token_hex(2)}".upper()


def new_certificate_id() -> str:
    random_part = "".join(secrets.choice(ALPHANUMERIC) for _ in range(5))
    return f"CERT-{_timestamp36()}-{random_part}".upper()


def new_verification_code(length: int = 12) -> str:
    return "".join(secrets.choice(ALPHANUMERIC) for _ in range(length))
