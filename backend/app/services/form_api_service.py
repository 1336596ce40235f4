"""
Form API Service - submission lookups against the Wix form submission API
"""

import re
from typing import Any, Dict, Optional

import httpx

from app.core.config import Settings
from app.core.exceptions import ConfigurationError, FormApiError, ResourceNotFoundError, ValidationError
from app.core.logging_config import logger


UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


class FormApiService:
    """Thin client for the form builder's submission endpoint"""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.base_url = settings.WIX_API_BASE_URL.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=settings.WIX_API_TIMEOUT)

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.WIX_API_KEY and self.settings.WIX_SITE_ID)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": self.settings.WIX_API_KEY,
            "wix-site-id": self.settings.WIX_SITE_ID,
        }

    async def get_submission(self, submission_id: Optional[str]) -> Dict[str, Any]:
        """
        Fetch one submission.

        Raises:
            ConfigurationError: API key or site id not configured
            ValidationError: submission id missing or not a UUID
            ResourceNotFoundError: the form builder has no such submission
            FormApiError: any other upstream failure
        """
        if not self.is_configured:
            logger.error("Missing WIX_API_KEY or WIX_SITE_ID")
            raise ConfigurationError(setting="WIX_API_KEY")

        if not submission_id:
            raise ValidationError("submissionId is required", field="submissionId")
        if not UUID_PATTERN.match(submission_id):
            raise ValidationError("Invalid submissionId format", field="submissionId")

        url = f"{self.base_url}/submissions/{submission_id}"
        try:
            response = await self.client.get(url, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"Form API returned {status} for {submission_id}: {e.response.text[:500]}")
            if status == 404:
                raise ResourceNotFoundError("Submission", submission_id, message="Submission not found")
            raise FormApiError(upstream_status=status)
        except httpx.HTTPError as e:
            logger.error(f"Form API request failed for {submission_id}: {e}")
            raise FormApiError()

        try:
            return response.json()["submission"]
        except (ValueError, KeyError, TypeError):
            raise FormApiError("Unexpected response from form API")

    async def get_submission_status(self, submission_id: Optional[str]) -> Optional[str]:
        submission = await self.get_submission(submission_id)
        return submission.get("status")

    async def close(self) -> None:
        await self.client.aclose()
