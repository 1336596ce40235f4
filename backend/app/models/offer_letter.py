"""
Offer Letter Model - one row per internship application that received an offer
"""

from sqlalchemy import Column, String, Text

from app.core.database import Base
from app.models.submission_record import SubmissionRecordMixin


class OfferLetter(SubmissionRecordMixin, Base):
    """Generated internship offer letter"""
    __tablename__ = "offer_letters"

    DOCUMENT_TYPE = "offer_letter"
    LABEL = "Offer letter"
    FILE_PREFIX = "Internship_Offer_Letter"

    # Application details
    phone_number = Column(String(50), nullable=False, default="")
    learn_about_us = Column(String(255), nullable=False, default="")
    gender = Column(String(50), nullable=False, default="")
    joined_linkedin = Column(String(50), nullable=False, default="")
    college = Column(String(255), nullable=False, default="")
    academic_qualification = Column(String(255), nullable=False, default="")
    current_semester = Column(String(50), nullable=False, default="")
    resume = Column(Text, nullable=False, default="")
    signature = Column(Text, nullable=False, default="")

    def to_dict(self) -> dict:
        data = self.base_dict()
        data.update({
            "phoneNumber": self.phone_number,
            "learnAboutUs": self.learn_about_us,
            "gender": self.gender,
            "joinedLinkedin": self.joined_linkedin,
            "college": self.college,
            "academicQualification": self.academic_qualification,
            "currentSemester": self.current_semester,
            "resume": self.resume,
            "signature": self.signature,
            "hasResume": bool(self.resume),
            "hasSignature": bool(self.signature),
        })
        return data

    def __repr__(self):
        return f"<OfferLetter {self.submission_id} - {self.candidate_name}>"
