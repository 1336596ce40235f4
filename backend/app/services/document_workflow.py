"""
Document Workflow - the generate path shared by offer letters and certificates

    lookup -> pending record -> render -> upload -> mark complete

A record is written as ``pending`` before anything is uploaded. If the upload
fails the pending row stays behind and the next request for the same
submission resumes it with the stored dates. If completing the row fails
after a successful upload, the uploaded object is deleted again.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from app.core.config import Settings
from app.core.exceptions import DuplicateSubmissionError, GenerationInProgressError
from app.core.logging_config import logger, set_submission_id
from app.services.period_calculator import compute_offer_period, parse_caller_date, parse_timestamp
from app.services.storage_service import StorageService, build_document_key
from app.services.submission_repository import SubmissionRepository


Renderer = Callable[[Any], Awaitable[bytes]]
FieldBuilder = Callable[[], Dict[str, Any]]

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass
class GenerationResult:
    record: Any
    created: bool


@dataclass(frozen=True)
class DocumentRoutes:
    """Where a document type's download and view endpoints live"""
    prefix: str     # e.g. "offer-letter"
    download: str   # e.g. "download-offer-letter"
    view: str       # e.g. "view-offer-letter"

    def download_url(self, settings: Settings, submission_id: str) -> str:
        return settings.public_url(f"api/{settings.API_VERSION}/{self.prefix}/{self.download}/{submission_id}")

    def view_url(self, settings: Settings, submission_id: str) -> str:
        return settings.public_url(f"api/{settings.API_VERSION}/{self.prefix}/{self.view}/{submission_id}")


OFFER_LETTER_ROUTES = DocumentRoutes("offer-letter", "download-offer-letter", "view-offer-letter")
CERTIFICATE_ROUTES = DocumentRoutes("certificate", "download-certificate", "view-certificate")


def _submission_time(raw: Optional[str]) -> datetime:
    parsed = parse_timestamp(raw)
    if parsed is None:
        if raw:
            logger.warning(f"Unparseable date_time {raw!r}, using server time")
        return datetime.now()
    # Keep the caller's calendar fields, drop the offset
    return parsed.replace(tzinfo=None)


def _optional(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _as_int(value: Any, default: int = 0) -> int:
    """Leading integer of the value ("3 tasks" -> 3), default when there is none"""
    if value is None:
        return default
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else default


def offer_letter_fields(resolved: Mapping[str, Any], rule: str) -> Dict[str, Any]:
    """Column values for a new offer letter, with the computed internship period"""
    submitted_at = _submission_time(resolved.get("date_time"))
    start_date, end_date = compute_offer_period(submitted_at, rule)
    return {
        "submission_id": str(resolved["submission_id"]),
        "first_name": resolved["first_name"],
        "last_name": resolved["last_name"],
        "email": resolved.get("email") or "",
        "domain": resolved["domain"],
        "start_date": start_date,
        "end_date": end_date,
        "submission_date_time": submitted_at,
        "phone_number": resolved.get("phone_number") or "",
        "learn_about_us": resolved.get("learn_about_us") or "",
        "gender": resolved.get("gender") or "",
        "joined_linkedin": resolved.get("joined_linkedin") or "",
        "college": resolved.get("college") or "",
        "academic_qualification": resolved.get("academic_qualification") or "",
        "current_semester": resolved.get("current_semester") or "",
        "resume": resolved.get("resume") or "",
        "signature": resolved.get("signature") or "",
    }


def certificate_fields(resolved: Mapping[str, Any]) -> Dict[str, Any]:
    """Column values for a new certificate; dates come from the caller"""
    fields = {
        "submission_id": str(resolved["submission_id"]),
        "first_name": resolved["first_name"],
        "last_name": resolved["last_name"],
        "email": resolved.get("email") or "",
        "domain": resolved["domain"],
        "start_date": parse_caller_date(resolved.get("start_date"), "start_date"),
        "end_date": parse_caller_date(resolved.get("end_date"), "end_date"),
        "submission_date_time": _submission_time(resolved.get("date_time")),
        "tasks_performed": _as_int(resolved.get("tasks_performed")),
        "hosted_website": _optional(resolved.get("hosted_website")),
        "experience_link": _optional(resolved.get("experience_link")),
        "donation": _optional(resolved.get("donation")),
        "payment_status": _optional(resolved.get("status")),
    }
    for i in range(1, 6):
        fields[f"linkedin_task{i}"] = _optional(resolved.get(f"linkedin_task{i}"))
        fields[f"github_task{i}"] = _optional(resolved.get(f"github_task{i}"))
    return fields


class DocumentWorkflow:
    """Generate-once orchestration for one document model"""

    def __init__(
        self,
        repository: SubmissionRepository,
        storage: StorageService,
        render: Renderer,
        folder: str,
    ):
        self.repository = repository
        self.storage = storage
        self.render = render
        self.folder = folder
        self.model = repository.model

    def document_key(self, record) -> str:
        return build_document_key(
            self.model.FILE_PREFIX,
            record.first_name,
            record.last_name,
            record.submission_id,
            self.folder,
        )

    async def generate(self, submission_id: str, build_fields: FieldBuilder) -> GenerationResult:
        """
        Produce the document for ``submission_id`` exactly once.

        ``build_fields`` is only called when a new record has to be written,
        so a repeat request never re-validates the caller's input. Returns
        the existing record (created=False) when a complete one is already
        stored. When a concurrent request won the insert but has not
        finished uploading, GenerationInProgressError is raised instead of
        handing back a record without a document.
        """
        doc_type = self.model.DOCUMENT_TYPE
        set_submission_id(submission_id)

        record = await self.repository.find_by_submission_id(submission_id)
        if record is not None and record.is_complete:
            logger.log_document_event(doc_type, "already_exists", submission_id)
            return GenerationResult(record, created=False)

        if record is None:
            try:
                record = await self.repository.create_pending(build_fields())
            except DuplicateSubmissionError:
                logger.log_document_event(doc_type, "duplicate_insert", submission_id)
                existing = await self.repository.find_by_submission_id(submission_id)
                if existing is None or not existing.is_complete:
                    raise GenerationInProgressError(self.repository.label, submission_id)
                return GenerationResult(existing, created=False)
            logger.log_document_event(doc_type, "pending", submission_id)
        else:
            logger.log_document_event(doc_type, "resuming", submission_id)

        pdf_bytes = await self.render(record)

        key = self.document_key(record)
        url = await self.storage.upload_document(pdf_bytes, key)
        logger.log_document_event(doc_type, "uploaded", submission_id, key=key, size=len(pdf_bytes))

        try:
            record = await self.repository.mark_complete(record, url)
        except Exception:
            logger.error(f"Completing {doc_type} {submission_id} failed, removing {key}")
            await self.storage.delete_document(key)
            raise

        logger.log_document_event(doc_type, "complete", submission_id)
        return GenerationResult(record, created=True)
