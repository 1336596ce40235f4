"""
Webhook capture models - raw form-builder payloads, stored as received
"""

from sqlalchemy import Column, String, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from app.core.database import Base
from app.core.database import RecordID, new_record_id


class Contact(Base):
    """Form-builder contact, upserted by contact_id"""
    __tablename__ = "contacts"

    id = Column(RecordID, primary_key=True, default=new_record_id)
    contact_id = Column(String(255), unique=True, nullable=False, index=True)

    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    locale = Column(String(20), nullable=True)
    company = Column(String(255), nullable=True)
    birthdate = Column(String(50), nullable=True)
    job_title = Column(String(255), nullable=True)
    image_url = Column(Text, nullable=True)
    name = Column(JSON, nullable=True)
    address = Column(JSON, nullable=True)
    label_keys = Column(JSON, nullable=True)
    created_date = Column(String(50), nullable=True)
    updated_date = Column(String(50), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Contact {self.contact_id}>"


class FormSubmission(Base):
    """One webhook delivery"""
    __tablename__ = "form_submissions"

    id = Column(RecordID, primary_key=True, default=new_record_id)

    form_name = Column(String(255), nullable=True)
    form_id = Column(String(255), nullable=True)
    submission_id = Column(String(255), nullable=True, index=True)
    contact_id = Column(String(255), nullable=True, index=True)
    submission_time = Column(String(50), nullable=True)
    submissions_link = Column(Text, nullable=True)

    form_field_mask = Column(JSON, nullable=True)
    form_fields = Column(JSON, nullable=True)  # every "field:*" key of the payload
    triggered_emails = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    fields = relationship(
        "FormFieldSubmission",
        back_populates="form_submission",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<FormSubmission {self.form_name} - {self.submission_id}>"


class FormFieldSubmission(Base):
    """Label/value pair from a webhook's 'submissions' array"""
    __tablename__ = "form_field_submissions"

    id = Column(RecordID, primary_key=True, default=new_record_id)
    form_submission_id = Column(RecordID, ForeignKey("form_submissions.id", ondelete="CASCADE"), nullable=False, index=True)
    label = Column(String(255), nullable=True)
    value = Column(Text, nullable=True)

    form_submission = relationship("FormSubmission", back_populates="fields")
