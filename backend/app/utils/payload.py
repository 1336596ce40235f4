"""
Inbound submission parsing.

Form builders post the same logical fields in several shapes: plain JSON,
form-encoded bodies, or JSON with the real payload nested under ``data``.
Field names vary as well, so every logical field has an ordered tuple of
accepted keys and ``resolve_fields`` takes the first present, non-empty one.
"""

import json
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple
from urllib.parse import parse_qsl

from fastapi import Request
from starlette.datastructures import UploadFile

from app.core.exceptions import MissingFieldsError
from app.core.logging_config import logger


FieldTable = Dict[str, Tuple[str, ...]]


_COMMON_FIELDS: FieldTable = {
    "first_name": ("first_name", "firstName", "First Name", "first-name"),
    "last_name": ("last_name", "lastName", "Last Name", "last-name"),
    "email": ("email", "Email", "email_address", "emailAddress"),
    "domain": ("domain", "Domain", "internship_domain", "internshipDomain"),
    "date_time": ("date_time", "dateTime", "submission_time", "submissionTime", "createdDate"),
}

OFFER_LETTER_FIELDS: FieldTable = {
    "submission_id": ("id", "submissionId", "submission_id", "ID"),
    **_COMMON_FIELDS,
    "phone_number": ("phone_number", "phoneNumber", "phone"),
    "learn_about_us": ("learn_about_us", "learnAboutUs"),
    "gender": ("gender", "Gender"),
    "joined_linkedin": ("joined_linkedin", "joinedLinkedin"),
    "college": ("college", "College", "college_name"),
    "academic_qualification": ("academic_qualification", "academicQualification"),
    "current_semester": ("current_semester", "currentSemester"),
    "resume": ("resume", "Resume", "resume_url"),
    "signature": ("signature", "Signature"),
}

CERTIFICATE_FIELDS: FieldTable = {
    "submission_id": ("submission_id", "submissionId", "id", "ID"),
    **_COMMON_FIELDS,
    "start_date": ("start_date", "startDate"),
    "end_date": ("end_date", "endDate"),
    "tasks_performed": ("tasks_performed", "tasksPerformed"),
    **{f"linkedin_task{i}": (f"linkedin_task{i}", f"linkedinTask{i}") for i in range(1, 6)},
    **{f"github_task{i}": (f"github_task{i}", f"githubTask{i}") for i in range(1, 6)},
    "hosted_website": ("hosted_website", "hostedWebsite"),
    "experience_link": ("experience_link", "experienceLink"),
    "donation": ("donation", "Donation"),
    "status": ("status", "payment_status", "paymentStatus"),
}

OFFER_LETTER_REQUIRED = ("submission_id", "first_name", "last_name", "domain")
CERTIFICATE_REQUIRED = ("submission_id", "first_name", "last_name", "domain", "start_date", "end_date")


def _is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _clean(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    return value


def resolve_fields(payload: Mapping[str, Any], table: FieldTable) -> Dict[str, Any]:
    """
    Map a raw payload onto logical field names.

    For each logical field the aliases are checked in order and the first
    present, non-empty value wins. Absent fields resolve to None.
    """
    resolved: Dict[str, Any] = {}
    for field, aliases in table.items():
        resolved[field] = None
        for alias in aliases:
            value = payload.get(alias)
            if _is_present(value):
                resolved[field] = _clean(value)
                break
    return resolved


def require_fields(
    resolved: Mapping[str, Any],
    required: Iterable[str],
    payload: Mapping[str, Any],
    include_payload: bool = False
) -> None:
    """Raise MissingFieldsError listing every required field that resolved to nothing."""
    required = list(required)
    missing = [field for field in required if not _is_present(resolved.get(field))]
    if missing:
        raise MissingFieldsError(
            required=required,
            missing=missing,
            received={field: resolved.get(field) for field in required},
            available_fields=list(payload.keys()),
            payload=dict(payload) if include_payload else None,
        )


def _unwrap(data: Any) -> Dict[str, Any]:
    """Use the ``data`` envelope when the form builder sent one"""
    if not isinstance(data, dict):
        return {}
    inner = data.get("data")
    if isinstance(inner, dict):
        return inner
    return data


def _parse_json(body: bytes) -> Optional[Dict[str, Any]]:
    try:
        return _unwrap(json.loads(body))
    except (ValueError, UnicodeDecodeError):
        return None


def _parse_urlencoded(body: bytes) -> Optional[Dict[str, Any]]:
    try:
        pairs = parse_qsl(body.decode("utf-8"), keep_blank_values=True, strict_parsing=True)
    except (ValueError, UnicodeDecodeError):
        return None
    return dict(pairs) if pairs else None


async def _parse_form(request: Request) -> Dict[str, Any]:
    form = await request.form()
    parsed: Dict[str, Any] = {}
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            parsed[key] = value.filename or ""
        else:
            parsed[key] = value
    return parsed


async def parse_submission_payload(request: Request) -> Dict[str, Any]:
    """
    Read a submission from any supported body shape.

    Query-string parameters are merged underneath the body (body values win).
    A body that cannot be parsed at all yields an empty payload, which then
    fails required-field validation.
    """
    content_type = request.headers.get("content-type", "").lower()
    body = await request.body()
    parsed: Optional[Dict[str, Any]] = None

    if "application/json" in content_type:
        parsed = _parse_json(body)
    elif "multipart/form-data" in content_type or "application/x-www-form-urlencoded" in content_type:
        parsed = await _parse_form(request)
    elif body:
        # No usable content type: try form first, then JSON
        parsed = _parse_urlencoded(body)
        if parsed is None:
            parsed = _parse_json(body)

    if parsed is None:
        if body:
            logger.warning(f"Unparseable submission body ({content_type or 'no content type'})")
        parsed = {}

    merged: Dict[str, Any] = dict(request.query_params)
    merged.update(parsed)
    return merged


def describe_payload(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Keys and value types, used by the form builder debug endpoint"""
    return {
        "keys": list(payload.keys()),
        "fieldTypes": {key: type(value).__name__ for key, value in payload.items()},
    }


# Query parameters of the notification endpoints
APPLICATION_EMAIL_FIELDS: FieldTable = {
    "id": ("id", "submissionId", "submission_id"),
    "firstName": ("firstName", "first_name"),
    "email": ("email",),
    "domain": ("domain",),
}

OFFER_EMAIL_FIELDS: FieldTable = {
    "id": ("id", "submissionId", "submission_id"),
    "candidateName": ("candidateName", "candidate_name"),
    "email": ("email",),
    "offerLetterUrl": ("offerLetterUrl", "downloadUrl", "documentUrl"),
    "startDate": ("startDate", "start_date"),
    "endDate": ("endDate", "end_date"),
    "taskLink": ("taskLink", "task_link"),
    "domain": ("domain",),
}

CERTIFICATE_EMAIL_FIELDS: FieldTable = {
    "id": ("id", "submissionId", "submission_id"),
    "candidateName": ("candidateName", "candidate_name"),
    "email": ("email",),
    "certificateUrl": ("certificateUrl", "downloadUrl", "documentUrl"),
    "startDate": ("startDate", "start_date"),
    "endDate": ("endDate", "end_date"),
    "domain": ("domain",),
}
