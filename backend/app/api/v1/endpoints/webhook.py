"""
Webhook sink - stores raw form builder deliveries as received
"""

import json
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.logging_config import logger
from app.models.form_submission import Contact, FormFieldSubmission, FormSubmission

router = APIRouter(prefix="/webhook", tags=["Webhook"])

CONTACT_FIELDS = {
    "email": "email",
    "phone": "phone",
    "locale": "locale",
    "company": "company",
    "birthdate": "birthdate",
    "job_title": "jobTitle",
    "image_url": "imageUrl",
    "name": "name",
    "address": "address",
    "label_keys": "labelKeys",
    "created_date": "createdDate",
    "updated_date": "updatedDate",
}


async def upsert_contact(db: AsyncSession, contact_id: str, data: Dict[str, Any]) -> Contact:
    result = await db.execute(select(Contact).where(Contact.contact_id == contact_id))
    contact: Optional[Contact] = result.scalar_one_or_none()
    if contact is None:
        contact = Contact(contact_id=contact_id)
        db.add(contact)

    for column, key in CONTACT_FIELDS.items():
        setattr(contact, column, data.get(key))
    return contact


@router.post("")
async def receive_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """Store one form builder delivery with its contact and field rows"""
    body = await request.body()
    try:
        form_data = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return JSONResponse(status_code=400, content={"success": False, "error": "Invalid JSON payload"})
    if not isinstance(form_data, dict):
        return JSONResponse(status_code=400, content={"success": False, "error": "Invalid JSON payload"})

    logger.info(
        f"[Webhook] Received form submission: form={form_data.get('formName')} "
        f"submission={form_data.get('submissionId')} contact={form_data.get('contactId')}"
    )

    contact_id = form_data.get("contactId")
    if isinstance(form_data.get("contact"), dict) and contact_id:
        await upsert_contact(db, contact_id, form_data["contact"])

    submission = FormSubmission(
        form_name=form_data.get("formName"),
        form_id=form_data.get("formId"),
        submission_id=form_data.get("submissionId"),
        contact_id=contact_id,
        submission_time=form_data.get("submissionTime"),
        submissions_link=form_data.get("submissionsLink"),
        form_field_mask=form_data.get("formFieldMask") or [],
        form_fields={key: value for key, value in form_data.items() if key.startswith("field:")},
        triggered_emails=form_data.get("triggered-emails-1"),
    )
    db.add(submission)
    await db.flush()

    entries = form_data.get("submissions")
    if isinstance(entries, list):
        db.add_all([
            FormFieldSubmission(
                form_submission_id=submission.id,
                label=entry.get("label"),
                value=None if entry.get("value") is None else str(entry.get("value")),
            )
            for entry in entries
            if isinstance(entry, dict)
        ])

    await db.commit()
    logger.info(f"[Webhook] Stored form submission {submission.id}")

    return {
        "success": True,
        "submissionId": submission.id,
        "formName": submission.form_name,
        "message": "Form submission stored successfully",
    }


@router.get("")
async def webhook_status():
    return {
        "message": "Webhook endpoint is active",
        "timestamp": datetime.utcnow().isoformat(),
    }
