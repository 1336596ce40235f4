"""
Certificate API - completion certificates and their public verification
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_certificate_renderer, get_email_service, get_storage
from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import SubmissionNotFoundError
from app.core.logging_config import logger
from app.core.security import require_passcode
from app.models.certificate import Certificate
from app.services.certificate_service import CertificateData, CertificateRenderer
from app.services.document_workflow import (
    CERTIFICATE_ROUTES,
    DocumentWorkflow,
    certificate_fields,
)
from app.services.email_service import EmailService, NotificationKind
from app.services.period_calculator import format_display_date
from app.services.storage_service import StorageService, build_document_filename
from app.services.submission_repository import ListFilters, SubmissionRepository
from app.utils.pagination import create_pagination_meta, normalize_page_params, parse_bool_filter
from app.utils.payload import (
    CERTIFICATE_EMAIL_FIELDS,
    CERTIFICATE_FIELDS,
    CERTIFICATE_REQUIRED,
    parse_submission_payload,
    require_fields,
    resolve_fields,
)
from app.utils.responses import pdf_response

router = APIRouter(prefix="/certificate", tags=["Certificates"])


def _filename(record) -> str:
    return build_document_filename(Certificate.FILE_PREFIX, record.first_name, record.last_name, record.submission_id)


async def _resolve_submission(request: Request) -> dict:
    payload = await parse_submission_payload(request)
    resolved = resolve_fields(payload, CERTIFICATE_FIELDS)
    require_fields(resolved, CERTIFICATE_REQUIRED, payload, include_payload=settings.DEBUG)
    return resolved


@router.post("/generate-certificate")
async def generate_certificate(
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
    renderer: CertificateRenderer = Depends(get_certificate_renderer),
):
    """
    Generate a completion certificate.

    Start and end dates are taken from the caller. Generating twice for the
    same submission id returns the stored certificate.
    """
    resolved = await _resolve_submission(request)
    submission_id = str(resolved["submission_id"])

    workflow = DocumentWorkflow(
        repository=SubmissionRepository(db, Certificate),
        storage=storage,
        render=lambda record: renderer.render(CertificateData.from_record(record)),
        folder=settings.CERTIFICATE_FOLDER,
    )
    result = await workflow.generate(
        submission_id, lambda: certificate_fields(resolved)
    )
    record = result.record

    response = {
        "success": True,
        "submissionId": submission_id,
        "candidateName": record.candidate_name,
        "domain": record.domain,
        "certificateUrl": CERTIFICATE_ROUTES.download_url(settings, submission_id),
        "documentUrl": record.document_url,
        "viewUrl": CERTIFICATE_ROUTES.view_url(settings, submission_id),
        "verificationUrl": renderer.verification_url(submission_id),
        "startDate": format_display_date(record.start_date),
        "endDate": format_display_date(record.end_date),
    }
    if not result.created:
        response["message"] = "Certificate already exists"
    return response


@router.post("/preview-certificate", dependencies=[Depends(require_passcode)])
async def preview_certificate(
    request: Request,
    renderer: CertificateRenderer = Depends(get_certificate_renderer),
):
    resolved = await _resolve_submission(request)
    fields = certificate_fields(resolved)
    data = CertificateData(
        submission_id=fields["submission_id"],
        first_name=fields["first_name"],
        last_name=fields["last_name"],
        domain=fields["domain"],
        start_date=fields["start_date"],
        end_date=fields["end_date"],
    )
    pdf_bytes = await renderer.render(data)
    filename = build_document_filename(
        "Preview_Certificate", data.first_name, data.last_name, data.submission_id
    )
    return pdf_response(pdf_bytes, filename, inline=True)


@router.get("/list-certificates", dependencies=[Depends(require_passcode)])
async def list_certificates(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    domain: Optional[str] = None,
    search: Optional[str] = None,
    approved: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    page, limit = normalize_page_params(page, limit)
    filters = ListFilters(
        page=page,
        page_size=limit,
        domain=domain,
        search=search,
        approved=parse_bool_filter(approved),
    )
    records, total = await SubmissionRepository(db, Certificate).list(filters)

    return {
        "success": True,
        "certificates": [record.to_dict() for record in records],
        "pagination": create_pagination_meta(page, limit, total),
    }


@router.get("/get-certificate-details/{submission_id}")
async def get_certificate_details(submission_id: str, db: AsyncSession = Depends(get_db)):
    record = await SubmissionRepository(db, Certificate).get_complete(submission_id)
    return {
        "success": True,
        "certificate": record.to_dict(),
        "downloadUrl": CERTIFICATE_ROUTES.download_url(settings, submission_id),
        "viewUrl": CERTIFICATE_ROUTES.view_url(settings, submission_id),
    }


@router.get("/download-certificate/{submission_id}")
async def download_certificate(
    submission_id: str,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    record = await SubmissionRepository(db, Certificate).get_complete(submission_id)
    content = await storage.fetch_document(record.document_url)
    return pdf_response(content, _filename(record))


@router.get("/view-certificate/{submission_id}")
async def view_certificate(
    submission_id: str,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    record = await SubmissionRepository(db, Certificate).get_complete(submission_id)
    content = await storage.fetch_document(record.document_url)
    return pdf_response(content, _filename(record), inline=True)


@router.patch("/approve/{submission_id}", dependencies=[Depends(require_passcode)])
async def approve_certificate(submission_id: str, db: AsyncSession = Depends(get_db)):
    record = await SubmissionRepository(db, Certificate).approve(submission_id)
    return {
        "success": True,
        "message": "Certificate approved successfully",
        "certificate": record.to_dict(),
    }


@router.get("/approve/{submission_id}")
async def get_certificate_approval(submission_id: str, db: AsyncSession = Depends(get_db)):
    record = await SubmissionRepository(db, Certificate).get_complete(submission_id)
    return {
        "isApproved": bool(record.approved),
        "message": f"Certificate is {'approved' if record.approved else 'not approved'}",
    }


@router.get("/verify/{submission_id}")
async def verify_certificate(submission_id: str, db: AsyncSession = Depends(get_db)):
    """Public lookup backing the QR code on every certificate"""
    timestamp = datetime.utcnow().isoformat()
    try:
        record = await SubmissionRepository(db, Certificate).get_complete(submission_id)
    except SubmissionNotFoundError:
        logger.log_document_event("certificate", "verify_failed", submission_id)
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "verified": False,
                "error": "Certificate not found",
                "verificationTimestamp": timestamp,
            },
        )

    logger.log_document_event("certificate", "verified", submission_id)
    return {
        "success": True,
        "verified": True,
        "certificate": record.to_public_dict(),
        "verificationTimestamp": timestamp,
    }


@router.get("/send-certificate")
async def send_certificate(
    request: Request,
    email_service: EmailService = Depends(get_email_service),
):
    """Email the candidate their certificate link"""
    params = dict(request.query_params)
    data = resolve_fields(params, CERTIFICATE_EMAIL_FIELDS)
    require_fields(data, ("id", "candidateName", "email"), params)

    await email_service.send(NotificationKind.CERTIFICATE_CONFIRMATION, data["email"], data)
    return {"sent": True}
