"""
Custom Exceptions for InternDesk
================================

Every exception carries the HTTP status it maps to, so the API layer can
convert it with a single exception handler.

Usage:
    from app.core.exceptions import SubmissionNotFoundError, S3UploadError

    if not record:
        raise SubmissionNotFoundError("Offer letter", submission_id)

    try:
        url = await storage.upload_document(pdf_bytes, key)
    except S3UploadError as e:
        logger.error(f"Upload failed: {e}")
        raise
"""

from typing import Optional, Any, Dict, List


class InternDeskError(Exception):
    """Base exception for all InternDesk errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_response(self) -> Dict[str, Any]:
        """Body returned to API callers"""
        return {
            "success": False,
            "error": self.message,
            "code": self.code,
            "details": self.details
        }


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(InternDeskError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class MissingFieldsError(ValidationError):
    """One or more required fields are absent after alias resolution"""

    def __init__(
        self,
        required: List[str],
        missing: List[str],
        received: Dict[str, Any],
        available_fields: List[str],
        payload: Optional[Dict[str, Any]] = None
    ):
        super().__init__("Missing required fields")
        self.code = "MISSING_FIELDS"
        self.required = required
        self.missing = missing
        self.received = received
        self.available_fields = available_fields
        self.payload = payload
        self.details = {"missing": missing}

    def to_response(self) -> Dict[str, Any]:
        body = {
            "error": self.message,
            "required": self.required,
            "missing": self.missing,
            "received": self.received,
            "availableFields": self.available_fields,
        }
        if self.payload is not None:
            body["payload"] = self.payload
        return body


class InvalidDateError(ValidationError):
    """A caller-supplied date could not be parsed"""

    def __init__(self, field: str, value: Any):
        super().__init__(f"Invalid date for '{field}': {value!r}", field=field)
        self.code = "INVALID_DATE"
        self.details["value"] = value


class InvalidEmailError(ValidationError):
    """Recipient email does not look like an address"""

    def __init__(self, email: str):
        super().__init__("Invalid email format.", field="email")
        self.code = "INVALID_EMAIL"
        self.details["value"] = email


# ============================================
# Authentication Errors (401-type)
# ============================================

class AuthenticationError(InternDeskError):
    """Passcode missing or wrong"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(InternDeskError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str, message: Optional[str] = None):
        super().__init__(
            message or f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class SubmissionNotFoundError(ResourceNotFoundError):
    """No complete offer letter / certificate for a submission id"""

    def __init__(self, document_label: str, submission_id: str):
        super().__init__(document_label, submission_id, message=f"{document_label} not found")


# ============================================
# Conflict Errors (409-type)
# ============================================

class DuplicateSubmissionError(InternDeskError):
    """A record for this submission id already exists"""

    status_code = 409

    def __init__(self, submission_id: str):
        super().__init__(
            f"Submission '{submission_id}' already exists",
            code="DUPLICATE_SUBMISSION",
            details={"submission_id": submission_id}
        )
        self.submission_id = submission_id


class GenerationInProgressError(InternDeskError):
    """Another request is still producing the document for this submission id"""

    status_code = 409

    def __init__(self, document_label: str, submission_id: str):
        super().__init__(
            f"{document_label} for '{submission_id}' is still being generated, retry shortly",
            code="GENERATION_IN_PROGRESS",
            details={"submission_id": submission_id}
        )


# ============================================
# Document Generation / Configuration Errors (500-type)
# ============================================

class DocumentGenerationError(InternDeskError):
    """Document rendering failed"""

    def __init__(self, message: str, doc_type: Optional[str] = None):
        super().__init__(message, code="DOCUMENT_GENERATION_FAILED")
        if doc_type:
            self.details["doc_type"] = doc_type


class ConfigurationError(InternDeskError):
    """A required server-side setting is missing"""

    def __init__(self, message: str = "Server configuration error", setting: Optional[str] = None):
        super().__init__(message, code="CONFIGURATION_ERROR")
        if setting:
            self.details["setting"] = setting


# ============================================
# Upstream Errors (502-type)
# ============================================

class UpstreamError(InternDeskError):
    """An external service call failed"""

    status_code = 502

    def __init__(self, message: str, code: str = "UPSTREAM_ERROR"):
        super().__init__(message, code=code)


class StorageError(UpstreamError):
    """Storage operation failed"""

    def __init__(self, message: str):
        super().__init__(message, code="STORAGE_ERROR")


class S3UploadError(StorageError):
    """S3 upload failed"""

    def __init__(self, key: str, message: str = "Upload failed"):
        super().__init__(f"Failed to upload to S3: {message}")
        self.code = "S3_UPLOAD_FAILED"
        self.details["s3_key"] = key


class S3DownloadError(StorageError):
    """S3 download failed"""

    def __init__(self, key: str, message: str = "Download failed"):
        super().__init__(f"Failed to download from S3: {message}")
        self.code = "S3_DOWNLOAD_FAILED"
        self.details["s3_key"] = key


class EmailDeliveryError(UpstreamError):
    """Mail transport refused or failed to send"""

    def __init__(self, recipient: str, message: str = "Failed to send email"):
        super().__init__(message, code="EMAIL_DELIVERY_FAILED")
        self.details["recipient"] = recipient


class FormApiError(UpstreamError):
    """Form-builder API call failed"""

    def __init__(self, message: str = "Failed to fetch submission", upstream_status: Optional[int] = None):
        super().__init__(message, code="FORM_API_ERROR")
        if upstream_status is not None:
            self.details["upstream_status"] = upstream_status


# ============================================
# Availability Errors (503-type)
# ============================================

class ServiceUnavailableError(InternDeskError):
    """A backing service is unreachable"""

    status_code = 503

    def __init__(self, message: str, code: str = "SERVICE_UNAVAILABLE"):
        super().__init__(message, code=code)


class DatabaseUnavailableError(ServiceUnavailableError):
    """Database connection failed"""

    def __init__(self, message: str = "Database unavailable"):
        super().__init__(message, code="DATABASE_UNAVAILABLE")
