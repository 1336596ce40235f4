"""
Offer Letter API - generate, preview, list, approve, download and email
internship offer letters
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_email_service, get_offer_letter_renderer, get_storage
from app.core.config import settings
from app.core.database import get_db
from app.core.logging_config import logger
from app.core.security import require_passcode
from app.models.offer_letter import OfferLetter
from app.services.document_workflow import (
    OFFER_LETTER_ROUTES,
    DocumentWorkflow,
    offer_letter_fields,
)
from app.services.email_service import EmailService, NotificationKind
from app.services.offer_letter_service import OfferLetterData, OfferLetterRenderer
from app.services.period_calculator import format_display_date
from app.services.storage_service import StorageService, build_document_filename
from app.services.submission_repository import ListFilters, SubmissionRepository
from app.utils.pagination import create_pagination_meta, normalize_page_params, parse_bool_filter
from app.utils.payload import (
    APPLICATION_EMAIL_FIELDS,
    OFFER_EMAIL_FIELDS,
    OFFER_LETTER_FIELDS,
    OFFER_LETTER_REQUIRED,
    parse_submission_payload,
    require_fields,
    resolve_fields,
)
from app.utils.responses import pdf_response

router = APIRouter(prefix="/offer-letter", tags=["Offer Letters"])


def _filename(record) -> str:
    return build_document_filename(OfferLetter.FILE_PREFIX, record.first_name, record.last_name, record.submission_id)


async def _resolve_submission(request: Request) -> dict:
    payload = await parse_submission_payload(request)
    resolved = resolve_fields(payload, OFFER_LETTER_FIELDS)
    require_fields(resolved, OFFER_LETTER_REQUIRED, payload, include_payload=settings.DEBUG)
    return resolved


@router.post("/generate-offer-letter")
async def generate_offer_letter(
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
    renderer: OfferLetterRenderer = Depends(get_offer_letter_renderer),
    email_service: EmailService = Depends(get_email_service),
):
    """
    Generate an offer letter for a form submission.

    Accepts JSON, form-encoded bodies and JSON nested under ``data``. A
    second request for the same submission id returns the stored letter.
    """
    resolved = await _resolve_submission(request)
    submission_id = str(resolved["submission_id"])

    workflow = DocumentWorkflow(
        repository=SubmissionRepository(db, OfferLetter),
        storage=storage,
        render=lambda record: renderer.render(OfferLetterData.from_record(record)),
        folder=settings.OFFER_LETTER_FOLDER,
    )
    result = await workflow.generate(
        submission_id, lambda: offer_letter_fields(resolved, settings.OFFER_PERIOD_RULE)
    )
    record = result.record

    response = {
        "success": True,
        "submissionId": submission_id,
        "candidateName": record.candidate_name,
        "domain": record.domain,
        "offerLetterUrl": OFFER_LETTER_ROUTES.download_url(settings, submission_id),
        "documentUrl": record.document_url,
        "viewUrl": OFFER_LETTER_ROUTES.view_url(settings, submission_id),
        "startDate": format_display_date(record.start_date),
        "endDate": format_display_date(record.end_date),
        "taskLink": email_service.task_link_for(record.domain),
    }
    if not result.created:
        response["message"] = "Offer letter already exists"
    return response


@router.post("/preview-offer-letter", dependencies=[Depends(require_passcode)])
async def preview_offer_letter(
    request: Request,
    renderer: OfferLetterRenderer = Depends(get_offer_letter_renderer),
):
    """Render an offer letter without storing anything"""
    resolved = await _resolve_submission(request)
    fields = offer_letter_fields(resolved, settings.OFFER_PERIOD_RULE)
    data = OfferLetterData(
        submission_id=fields["submission_id"],
        first_name=fields["first_name"],
        last_name=fields["last_name"],
        domain=fields["domain"],
        start_date=fields["start_date"],
        end_date=fields["end_date"],
    )
    pdf_bytes = await renderer.render(data)
    filename = build_document_filename(
        "Preview_Offer_Letter", data.first_name, data.last_name, data.submission_id
    )
    return pdf_response(pdf_bytes, filename, inline=True)


@router.get("/list-offer-letters", dependencies=[Depends(require_passcode)])
async def list_offer_letters(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    domain: Optional[str] = None,
    search: Optional[str] = None,
    approved: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    """Dashboard listing with domain filter, search and approval filter"""
    page, limit = normalize_page_params(page, limit)
    filters = ListFilters(
        page=page,
        page_size=limit,
        domain=domain,
        search=search,
        approved=parse_bool_filter(approved),
    )
    records, total = await SubmissionRepository(db, OfferLetter).list(filters)

    return {
        "success": True,
        "offerLetters": [record.to_dict() for record in records],
        "pagination": create_pagination_meta(page, limit, total),
    }


@router.get("/get-offer-letter-details/{submission_id}")
async def get_offer_letter_details(submission_id: str, db: AsyncSession = Depends(get_db)):
    record = await SubmissionRepository(db, OfferLetter).get_complete(submission_id)
    return {
        "success": True,
        "offerLetter": record.to_dict(),
        "downloadUrl": OFFER_LETTER_ROUTES.download_url(settings, submission_id),
        "viewUrl": OFFER_LETTER_ROUTES.view_url(settings, submission_id),
    }


@router.get("/download-offer-letter/{submission_id}")
async def download_offer_letter(
    submission_id: str,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    record = await SubmissionRepository(db, OfferLetter).get_complete(submission_id)
    content = await storage.fetch_document(record.document_url)
    return pdf_response(content, _filename(record))


@router.get("/view-offer-letter/{submission_id}")
async def view_offer_letter(
    submission_id: str,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    record = await SubmissionRepository(db, OfferLetter).get_complete(submission_id)
    content = await storage.fetch_document(record.document_url)
    return pdf_response(content, _filename(record), inline=True)


@router.patch("/approve/{submission_id}", dependencies=[Depends(require_passcode)])
async def approve_offer_letter(submission_id: str, db: AsyncSession = Depends(get_db)):
    record = await SubmissionRepository(db, OfferLetter).approve(submission_id)
    return {
        "success": True,
        "message": "Offer letter approved successfully",
        "offerLetter": record.to_dict(),
    }


@router.get("/approve/{submission_id}")
async def get_offer_letter_approval(submission_id: str, db: AsyncSession = Depends(get_db)):
    record = await SubmissionRepository(db, OfferLetter).get_complete(submission_id)
    return {
        "isApproved": bool(record.approved),
        "message": f"Offer letter is {'approved' if record.approved else 'not approved'}",
    }


@router.get("/send-offer-letter")
async def send_offer_letter(
    request: Request,
    email_service: EmailService = Depends(get_email_service),
):
    """Email the candidate their offer letter link, period and task brief"""
    params = dict(request.query_params)
    data = resolve_fields(params, OFFER_EMAIL_FIELDS)
    require_fields(data, ("id", "candidateName", "email"), params)

    await email_service.send(NotificationKind.OFFER_CONFIRMATION, data["email"], data)
    return {"sent": True}


@router.get("/send-application-email")
async def send_application_email(
    request: Request,
    email_service: EmailService = Depends(get_email_service),
):
    """Acknowledge a new internship application"""
    params = dict(request.query_params)
    data = resolve_fields(params, APPLICATION_EMAIL_FIELDS)
    require_fields(data, ("id", "firstName", "email", "domain"), params)

    await email_service.send(NotificationKind.APPLICATION_RECEIVED, data["email"], data)
    logger.info(f"Application email sent for {data['id']}")
    return {"sent": True}
