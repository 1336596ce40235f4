"""
Shared columns for generated internship documents (offer letters, certificates)
"""

from sqlalchemy import Column, String, Boolean, DateTime, Date, Text
from datetime import datetime
import enum

from app.core.database import RecordID, new_record_id


class DocumentStatus(str, enum.Enum):
    """Lifecycle of a generated document"""
    PENDING = "pending"    # Row written, PDF not yet uploaded
    COMPLETE = "complete"  # PDF uploaded and document_url set


class SubmissionRecordMixin:
    """Columns common to every submission-backed document"""

    id = Column(RecordID, primary_key=True, default=new_record_id)

    # Natural key supplied by the form builder
    submission_id = Column(String(255), unique=True, nullable=False, index=True)

    # Candidate
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, default="")
    domain = Column(String(255), nullable=False, index=True)

    # Internship period (computed or parsed once)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    # Storage
    document_url = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=DocumentStatus.PENDING.value, index=True)

    # Workflow
    approved = Column(Boolean, nullable=False, default=False)

    # Timestamps
    submission_date_time = Column(DateTime, nullable=False, default=datetime.utcnow)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def candidate_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_complete(self) -> bool:
        return self.status == DocumentStatus.COMPLETE.value and bool(self.document_url)

    def base_dict(self) -> dict:
        """Camel-cased fields shared by both document types"""
        return {
            "id": str(self.id),
            "submissionId": self.submission_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "candidateName": self.candidate_name,
            "email": self.email,
            "domain": self.domain,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "documentUrl": self.document_url,
            "approved": bool(self.approved),
            "submissionDateTime": self.submission_date_time.isoformat() if self.submission_date_time else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
