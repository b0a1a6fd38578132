"""
PDF certificate rendering with reportlab.

The layout is fixed: a landscape A4 page with a type-dependent background,
the recipient and event, two signature blocks and the verification QR code.
The file is written once; revoking a certificate never touches it.
"""

import io
import logging
from datetime import datetime
from pathlib import Path

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from campus_events import config
from campus_events.qr_utils import generate_certificate_qr

logger = logging.getLogger(__name__)

CERTIFICATE_TYPES = ("participation", "winner", "completion", "achievement", "appreciation")
REQUIRED_FIELDS = ("user_name", "event_title", "event_date", "certificate_type",
                   "certificate_id", "verification_code")

BACKGROUNDS = {
    "participation": "#f8fafc",
    "winner": "#fef3c7",
    "completion": "#ecfdf5",
    "achievement": "#ede9fe",
    "appreciation": "#fce7f3",
}

TITLES = {
    "participation": "Certificate of Participation",
    "winner": "Certificate of Achievement",
    "completion": "Certificate of Completion",
    "achievement": "Certificate of Excellence",
    "appreciation": "Certificate of Appreciation",
}

DARK = colors.HexColor("#1f2937")
MUTED = colors.HexColor("#6b7280")
BODY = colors.HexColor("#374151")


class CertificateDataError(ValueError):
    def __init__(self, field, message):
        super().__init__(message)
        self.field = field


def validate_certificate_data(data):
    for field in REQUIRED_FIELDS:
        if not data.get(field):
            raise CertificateDataError(field, f"Missing required field: {field}")

    if data["certificate_type"] not in CERTIFICATE_TYPES:
        raise CertificateDataError("certificate_type", f"Invalid certificate type: {data['certificate_type']}")

    score = data.get("score")
    if score is not None and not 0 <= score <= 100:
        raise CertificateDataError("score", "Score must be between 0 and 100")
    return True


def achievement_text(certificate_type, position=None):
    if certificate_type == "winner":
        return f"has achieved {position or 'Winner'} position in"
    return {
        "participation": "has successfully participated in",
        "completion": "has successfully completed",
        "achievement": "has demonstrated excellence in",
        "appreciation": "is appreciated for contribution to",
    }.get(certificate_type, "has participated in")


def _draw_frame(pdf, width, height, certificate_type):
    pdf.setFillColor(colors.HexColor(BACKGROUNDS.get(certificate_type, BACKGROUNDS["participation"])))
    pdf.rect(0, 0, width, height, stroke=0, fill=1)

    pdf.setStrokeColor(DARK)
    pdf.setLineWidth(3)
    pdf.rect(30, 30, width - 60, height - 60, stroke=1, fill=0)
    pdf.setStrokeColor(MUTED)
    pdf.setLineWidth(1)
    pdf.rect(45, 45, width - 90, height - 90, stroke=1, fill=0)

    # header band
    pdf.setFillColor(DARK)
    pdf.rect(80, height - 160, width - 160, 80, stroke=0, fill=1)
    pdf.setFillColor(colors.white)
    pdf.setFont("Helvetica-Bold", 30)
    pdf.drawCentredString(width / 2, height - 118, "Campus Events")
    pdf.setFont("Helvetica", 14)
    pdf.drawCentredString(width / 2, height - 145, "Event Management System")


def _draw_content(pdf, width, height, data):
    certificate_type = data["certificate_type"]
    center = width / 2

    pdf.setFillColor(DARK)
    pdf.setFont("Helvetica-Bold", 28)
    pdf.drawCentredString(center, height - 205, TITLES.get(certificate_type, TITLES["participation"]))

    pdf.setFillColor(BODY)
    pdf.setFont("Helvetica", 16)
    pdf.drawCentredString(center, height - 245, "This is to certify that")

    pdf.setFillColor(DARK)
    pdf.setFont("Helvetica-Bold", 32)
    pdf.drawCentredString(center, height - 290, data["user_name"])

    pdf.setFillColor(BODY)
    pdf.setFont("Helvetica", 16)
    pdf.drawCentredString(center, height - 325, achievement_text(certificate_type, data.get("position")))

    pdf.setFillColor(DARK)
    pdf.setFont("Helvetica-Bold", 24)
    pdf.drawCentredString(center, height - 360, data["event_title"])

    event_date = data["event_date"]
    if isinstance(event_date, datetime):
        event_date = event_date.strftime("%B %d, %Y")
    pdf.setFillColor(MUTED)
    pdf.setFont("Helvetica", 14)
    pdf.drawCentredString(center, height - 390, f"Held on {event_date}")

    pdf.setFont("Helvetica", 12)
    y = height - 410
    if certificate_type == "winner" and data.get("score") is not None:
        pdf.drawCentredString(center, y, f"Score: {data['score']}")
        y -= 18
    if data.get("department"):
        pdf.drawCentredString(center, y, f"Department: {data['department']}")

    signature_y = 95
    for x, name, role in ((150, data.get("organizer_name") or "Event Organizer", "Organizer"),
                          (width - 300, "Campus Events Team", "Authorized Signatory")):
        pdf.setFillColor(DARK)
        pdf.setFont("Helvetica", 12)
        pdf.drawString(x, signature_y + 30, "_____________________")
        pdf.setFillColor(MUTED)
        pdf.setFont("Helvetica", 10)
        pdf.drawString(x, signature_y + 12, name)
        pdf.drawString(x, signature_y - 2, role)


def _draw_verification(pdf, width, data):
    try:
        qr = generate_certificate_qr(data["verification_code"])
        pdf.drawImage(ImageReader(io.BytesIO(qr["png"])), width - 140, 60, width=80, height=80)
        pdf.setFillColor(MUTED)
        pdf.setFont("Helvetica", 8)
        pdf.drawCentredString(width - 100, 50, "Scan to verify")
    except Exception:
        # the certificate stays valid without the picture; the code is still printed
        logger.exception("Failed to add QR code to certificate %s", data["certificate_id"])

    pdf.setFillColor(MUTED)
    pdf.setFont("Helvetica", 8)
    pdf.drawString(60, 50, f"ID: {data['certificate_id']}  Verification code: {data['verification_code']}")


def generate_certificate(data) -> bytes:
    """
    Renders a certificate and returns the PDF bytes.

    ``data`` keys: user_name, event_title, event_date, certificate_type,
    certificate_id, verification_code and optionally organizer_name,
    department, position, score.
    """
    validate_certificate_data(data)

    buffer = io.BytesIO()
    width, height = landscape(A4)
    pdf = canvas.Canvas(buffer, pagesize=(width, height))
    pdf.setTitle(f"{TITLES[data['certificate_type']]} - {data['user_name']}")

    _draw_frame(pdf, width, height, data["certificate_type"])
    _draw_content(pdf, width, height, data)
    _draw_verification(pdf, width, data)

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def certificate_path(certificate_id) -> Path:
    return Path(config.CERTIFICATES_DIR) / f"cert_{certificate_id}.pdf"


def save_certificate_file(pdf_bytes, certificate_id) -> str:
    path = certificate_path(certificate_id)
    path.parent.mkdir(parents=True, exist_ok=True)
    # "xb": an issued certificate file is never overwritten
    with open(path, "xb") as fh:
        fh.write(pdf_bytes)
    return str(path)
