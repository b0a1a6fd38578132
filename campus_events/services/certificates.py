"""
Certificate issuance, verification, downloads, shares and revocation.
"""

import logging
import math
from datetime import datetime
from pathlib import Path
from urllib.parse import quote

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus_events.certificate_generator import (TITLES, CertificateDataError, certificate_path,
                                                 generate_certificate as render_certificate,
                                                 save_certificate_file)
from campus_events.errors import NotFound, StateConflict, ValidationFailed
from campus_events.id_utils import new_certificate_id, new_verification_code
from campus_events.models.certificate import Certificate
from campus_events.models.user import User
from campus_events.permissions import ensure_can
from campus_events.qr_utils import certificate_verification_url
from campus_events.services import events as event_service
from campus_events.services.notifications import notify
from campus_events.services.points import CERTIFICATE_POINTS, WINNER_BADGE, award_badge, award_points
from campus_events.services.registrations import get_registration_or_404

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Certificate not found or invalid verification code"


def get_certificate_or_404(db: Session, certificate_pk: int) -> Certificate:
    certificate = db.get(Certificate, certificate_pk)
    if certificate is None:
        raise NotFound("Certificate not found", reason="certificate_not_found")
    return certificate


def _unique_verification_code(db: Session) -> str:
    while True:
        code = new_verification_code()
        if not db.query(Certificate.id).filter(Certificate.verification_code == code).first():
            return code


def _duplicate():
    return StateConflict("Certificate already exists for this user and event", reason="certificate_exists")


def _event_duration(event) -> str:
    days = max(1, math.ceil((event.end_date - event.start_date).total_seconds() / 86400))
    return "1 day" if days == 1 else f"{days} days"


def generate(
db: Session, actor: User, data) -> Certificate:
    """
    Issues a certificate for a registration.

    The row is flushed first so a duplicate (user, event, type) fails before
    anything is rendered. The PDF is then written once to
    ``CERTIFICATES_DIR`` and the registration, points and badges are updated
    in the same transaction as the certificate row.
    """
    registration = get_registration_or_404(db, data.registration_id)
    ensure_can(actor, "certificate.generate", registration,
               "Not authorized to generate certificates for this event")

    if registration.status == "cancelled":
        raise StateConflict("Cannot issue a certificate for a cancelled registration",
                            reason="registration_inactive")

    exists = db.query(Certificate.id).filter(
        Certificate.user_id == registration.user_id,
        Certificate.event_id == registration.event_id,
        Certificate.type == data.type,
    ).first()
    if exists:
        raise _duplicate()

    event = registration.event
    user = registration.user
    certificate_id = new_certificate_id()
    verification_code = _unique_verification_code(db)

    certificate = Certificate(
        user_id=user.id,
        event_id=event.id,
        registration_id=registration.id,
        issued_by_id=actor.id,
        certificate_id=certificate_id,
        type=data.type,
        title=data.title or f"{TITLES[data.type]} - {event.title}"[:100],
        description=data.description,
        position=data.position,
        score=data.score,
        duration=data.duration or _event_duration(event),
        verification_code=verification_code,
        verification_url=certificate_verification_url(verification_code),
        certificate_url=str(certificate_path(certificate_id)),
    )
    db.add(certificate)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise _duplicate()

    try:
        pdf = render_certificate({
            "user_name": user.name,
            "event_title": event.title,
            "event_date": event.start_date,
            "certificate_type": data.type,
            "certificate_id": certificate_id,
            "verification_code": verification_code,
            "organizer_name": event.organizer.name if event.organizer else None,
            "department": user.department or event.department,
            "position": data.position,
            "score": data.score,
        })
    except CertificateDataError as e:
        db.rollback()
        raise ValidationFailed.field(e.field, str(e))

    try:
        certificate.certificate_url = save_certificate_file(pdf, certificate_id)
    except OSError:
        db.rollback()
        logger.exception("Could not store certificate file for %s", certificate_id)
        raise

    now = datetime.utcnow()
    registration.certificate_eligible = True
    registration.certificate_id = certificate_id
    registration.certificate_url = certificate.certificate_url
    registration.certificate_issued_at = now

    award_points(db, user.id, CERTIFICATE_POINTS[data.type], f"{data.type} certificate")
    if data.type == "winner":
        award_badge(db, user, **WINNER_BADGE)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        Path(certificate.certificate_url).unlink(missing_ok=True)
        raise _duplicate()
    db.refresh(certificate)
    logger.info("Certificate %s (%s) issued to user %s for event %s by user %s",
                certificate_id, data.type, user.id, event.id, actor.id)

    notify(db, user.id, "Certificate issued",
           f'Your {data.type} certificate for "{event.title}" is ready.', "certificate",
           type="success", sender_id=actor.id, related_event_id=event.id,
           related_registration_id=registration.id)
    return certificate


def verify(db: Session, verification_code: str) -> dict:
    certificate = db.query(Certificate).filter(
        Certificate.verification_code == verification_code.strip().upper(),
        Certificate.status == "active",
    ).first()
    if certificate is None:
        raise NotFound(NOT_FOUND_MESSAGE, reason="certificate_not_found")

    if certificate.is_expired:
        certificate.status = "expired"
        db.commit()
        logger.info("Certificate %s marked expired on verification", certificate.certificate_id)
        raise NotFound(NOT_FOUND_MESSAGE, reason="certificate_not_found")

    event = certificate.event
    return {
        "certificate_id": certificate.certificate_id,
        "recipient_name": certificate.user.name,
        "recipient_email": certificate.user.email,
        "event_title": event.title,
        "event_date": event.start_date,
        "type": certificate.type,
        "title": certificate.title,
        "position": certificate.position,
        "score": certificate.score,
        "issued_date": certificate.issued_date,
        "organizer": event.organizer.name if event.organizer else None,
        "status": certificate.status,
    }


def my_certificates(db: Session, user: User, type=None):
    query = db.query(Certificate).filter(Certificate.user_id == user.id)
    if type:
        query = query.filter(Certificate.type == type)
    return query.order_by(Certificate.issued_date.desc(), Certificate.id.desc()).all()


def get_certificate(db: Session, user: User, certificate_pk: int) -> Certificate:
    certificate = get_certificate_or_404(db, certificate_pk)
    ensure_can(user, "certificate.view", certificate, "Not authorized to view this certificate")
    return certificate


def event_certificates(db: Session, user: User, event_id: int) -> dict:
    event = event_service.get_event_or_404(db, event_id)
    ensure_can(user, "event.manage", event, "Not authorized to view certificates for this event")

    certificates = db.query(Certificate).filter(Certificate.event_id == event.id).order_by(
        Certificate.issued_date.desc(), Certificate.id.desc()).all()
    rows = db.query(Certificate.type, func.count(Certificate.id)).filter(
        Certificate.event_id == event.id).group_by(Certificate.type).all()
    stats = {type_: count for type_, count in rows}
    stats["total"] = len(certificates)
    return {"certificates": certificates, "stats": stats}


def record_download(db: Session, user: User, certificate_pk: int):
    """Counts a download and returns ``(certificate, pdf path)``."""
    certificate = get_certificate_or_404(db, certificate_pk)
    ensure_can(user, "certificate.download", certificate, "Not authorized to download this certificate")

    if certificate.status == "revoked":
        raise StateConflict("Certificate has been revoked", reason="certificate_revoked")

    path = certificate_path(certificate.certificate_id)
    if not path.is_file():
        logger.error("Certificate file missing for %s at %s", certificate.certificate_id, path)
        raise NotFound("Certificate file not found", reason="certificate_file_missing")

    db.query(Certificate).filter(Certificate.id == certificate.id).update({
        Certificate.download_count: Certificate.download_count + 1,
        Certificate.last_downloaded: datetime.utcnow(),
    }, synchronize_session="fetch")
    db.commit()
    db.refresh(certificate)
    return certificate, path


def share(db: Session, user: User, certificate_pk: int, platform: str) -> dict:
    certificate = get_certificate_or_404(db, certificate_pk)
    ensure_can(user, "certificate.share", certificate, "Not authorized to share this certificate")

    platform_column = getattr(Certificate, f"{platform}_shares")
    db.query(Certificate).filter(Certificate.id == certificate.id).update({
        Certificate.share_count: Certificate.share_count + 1,
        platform_column: platform_column + 1,
    }, synchronize_session="fetch")
    db.commit()

    text = f"I just received a {certificate.type} certificate for {certificate.event.title}! 🎉"
    url = certificate_verification_url(certificate.verification_code)
    share_urls = {
        "linkedin": f"https://www.linkedin.com/sharing/share-offsite/?url={quote(url, safe='')}"
                    f"&title={quote(text, safe='')}",
        "twitter": f"https://twitter.com/intent/tweet?text={quote(text, safe='')}&url={quote(url, safe='')}",
        "facebook": f"https://www.facebook.com/sharer/sharer.php?u={quote(url, safe='')}",
    }
    return {"platform": platform, "share_url": share_urls[platform], "share_text": text}


def revoke(db: Session, admin: User, certificate_pk: int, reason: str) -> Certificate:
    """One-way: the status flips to revoked, the stored PDF is left as it is."""
    certificate = get_certificate_or_404(db, certificate_pk)
    if certificate.status == "revoked":
        raise StateConflict("Certificate is already revoked", reason="already_revoked")

    certificate.status = "revoked"
    certificate.revoked_at = datetime.utcnow()
    certificate.revoked_by_id = admin.id
    certificate.revoked_reason = reason
    db.commit()
    db.refresh(certificate)
    logger.info("Certificate %s revoked by admin %s", certificate.certificate_id, admin.id)
    return certificate
