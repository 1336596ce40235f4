"""
Form builder submission endpoints - status lookups and an integration debug echo
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from app.api.deps import get_form_api
from app.core.config import settings
from app.core.exceptions import ResourceNotFoundError
from app.core.logging_config import logger
from app.services.form_api_service import FormApiService
from app.utils.payload import describe_payload, parse_submission_payload

router = APIRouter(tags=["Submissions"])


@router.get("/get-submission")
async def get_submission(
    response: Response,
    submissionId: Optional[str] = None,
    form_api: FormApiService = Depends(get_form_api),
):
    """Current status of a form builder submission"""
    status = await form_api.get_submission_status(submissionId)
    response.headers["Cache-Control"] = "s-maxage=3600, stale-while-revalidate"
    return {"status": status}


@router.post("/debug-wix-request", tags=["Debug"], include_in_schema=settings.DEBUG)
async def debug_wix_request(request: Request):
    """Echo what the form builder actually sent. Only available with DEBUG on."""
    if not settings.DEBUG:
        raise ResourceNotFoundError("Endpoint", "debug-wix-request", message="Not found")

    body = await request.body()
    payload = await parse_submission_payload(request)
    content_type = request.headers.get("content-type", "")
    described = describe_payload(payload)

    logger.debug(f"[Debug] Form builder request: content-type={content_type} keys={list(payload)}")

    return {
        "success": True,
        "debug": {
            "contentType": content_type,
            "bodyLength": len(body),
            "rawBodyPreview": body[:200].decode("utf-8", errors="replace"),
            "parsedData": payload,
            "availableKeys": described["keys"],
            "fieldTypes": described["fieldTypes"],
        },
    }
