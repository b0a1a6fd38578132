# campus_events/routes/certificates_fastapi.py
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from campus_events import database
from campus_events.auth import get_admin_user, get_current_active_user
from campus_events.models.user import User
from campus_events.schemas.certificate import (CertificateGenerate, CertificateRead, CertificateRevoke,
                                               CertificateShare, CertificateType, CertificateVerification,
                                               EventCertificates, ShareLink)
from campus_events.schemas.common import Envelope
from campus_events.services import certificates as certificate_service

router = APIRouter(
    tags=["Certificates"],
    prefix="/api/v1/certificates"
)


@router.post("/generate", response_model=Envelope[CertificateRead], status_code=status.HTTP_201_CREATED)
def generate_certificate(payload: CertificateGenerate, current_user: User = Depends(get_current_active_user),
                         db: Session = Depends(database.get_db)):
    certificate = certificate_service.generate(db, current_user, payload)
    return {"success": True, "message": "Certificate generated successfully", "data": certificate}


@router.get("/verify/{verification_code}", response_model=Envelope[CertificateVerification])
def verify_certificate(verification_code: str, db: Session = Depends(database.get_db)):
    """Public: no authentication required."""
    result = certificate_service.verify(db, verification_code)
    return {"success": True, "message": "Certificate verified successfully", "data": result}


@router.get("/my", response_model=Envelope[List[CertificateRead]])
def read_my_certificates(type: Optional[CertificateType] = None,
                         current_user: User = Depends(get_current_active_user),
                         db: Session = Depends(database.get_db)):
    certificates = certificate_service.my_certificates(db, current_user, type)
    return {"success": True, "message": f"{len(certificates)} certificates found", "data": certificates}


@router.get("/event/{event_id}", response_model=Envelope[EventCertificates])
def read_event_certificates(event_id: int, current_user: User = Depends(get_current_active_user),
                            db: Session = Depends(database.get_db)):
    result = certificate_service.event_certificates(db, current_user, event_id)
    return {"success": True, "message": f"{len(result['certificates'])} certificates found", "data": result}


@router.get("/{certificate_id}", response_model=Envelope[CertificateRead])
def read_certificate(certificate_id: int, current_user: User = Depends(get_current_active_user),
                     db: Session = Depends(database.get_db)):
    certificate = certificate_service.get_certificate(db, current_user, certificate_id)
    return {"success": True, "message": "Certificate found", "data": certificate}


@router.get("/{certificate_id}/download", response_class=FileResponse)
def download_certificate(certificate_id: int, current_user: User = Depends(get_current_active_user),
                         db: Session = Depends(database.get_db)):
    certificate, path = certificate_service.record_download(db, current_user, certificate_id)
    return FileResponse(path, media_type="application/pdf",
                        filename=f"certificate_{certificate.certificate_id}.pdf")


@router.post("/{certificate_id}/share", response_model=Envelope[ShareLink])
def share_certificate(certificate_id: int, payload: CertificateShare,
                      current_user: User = Depends(get_current_active_user),
                      db: Session = Depends(database.get_db)):
    link = certificate_service.share(db, current_user, certificate_id, payload.platform)
    return {"success": True, "message": "Share URL generated successfully", "data": link}


@router.patch("/{certificate_id}/revoke", response_model=Envelope[CertificateRead])
def revoke_certificate(certificate_id: int, payload: CertificateRevoke, admin: User = Depends(get_admin_user),
                       db: Session = Depends(database.get_db)):
    certificate = certificate_service.revoke(db, admin, certificate_id, payload.reason)
    return {"success": True, "message": "Certificate revoked successfully", "data": certificate}
