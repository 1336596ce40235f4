from app.services.storage_service import StorageService
from app.services.email_service import EmailService, NotificationKind
from app.services.asset_loader import AssetLoader
from app.services.form_api_service import FormApiService

# Document generation
from app.services.offer_letter_service import OfferLetterRenderer, OfferLetterData
from app.services.certificate_service import CertificateRenderer, CertificateData
from app.services.submission_repository import SubmissionRepository, ListFilters
from app.services.document_workflow import DocumentWorkflow, GenerationResult

__all__ = [
    # External services
    "StorageService",
    "EmailService",
    "NotificationKind",
    "AssetLoader",
    "FormApiService",
    # Documents
    "OfferLetterRenderer",
    "OfferLetterData",
    "CertificateRenderer",
    "CertificateData",
    "SubmissionRepository",
    "ListFilters",
    "DocumentWorkflow",
    "GenerationResult",
]
