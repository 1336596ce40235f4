# Re-export all models for convenient imports
from app.models.submission_record import SubmissionRecordMixin, DocumentStatus
from app.models.offer_letter import OfferLetter
from app.models.certificate import Certificate
from app.models.form_submission import Contact, FormSubmission, FormFieldSubmission

__all__ = [
    # Documents
    "SubmissionRecordMixin",
    "DocumentStatus",
    "OfferLetter",
    "Certificate",
    # Webhook capture
    "Contact",
    "FormSubmission",
    "FormFieldSubmission",
]
