"""
Certificate Model - completion certificates issued at the end of an internship
"""

from sqlalchemy import Column, String, Integer, Text

from app.core.database import Base
from app.models.submission_record import SubmissionRecordMixin


class Certificate(SubmissionRecordMixin, Base):
    """Generated internship completion certificate"""
    __tablename__ = "certificates"

    DOCUMENT_TYPE = "certificate"
    LABEL = "Certificate"
    FILE_PREFIX = "Internship_Certificate"

    tasks_performed = Column(Integer, nullable=False, default=0)

    # Proof-of-work links
    linkedin_task1 = Column(Text, nullable=True)
    linkedin_task2 = Column(Text, nullable=True)
    linkedin_task3 = Column(Text, nullable=True)
    linkedin_task4 = Column(Text, nullable=True)
    linkedin_task5 = Column(Text, nullable=True)
    github_task1 = Column(Text, nullable=True)
    github_task2 = Column(Text, nullable=True)
    github_task3 = Column(Text, nullable=True)
    github_task4 = Column(Text, nullable=True)
    github_task5 = Column(Text, nullable=True)
    hosted_website = Column(Text, nullable=True)
    experience_link = Column(Text, nullable=True)

    donation = Column(String(50), nullable=True)
    payment_status = Column(String(50), nullable=True)  # form builder "status" field

    @property
    def linkedin_links(self) -> list:
        return [link for link in (
            self.linkedin_task1, self.linkedin_task2, self.linkedin_task3,
            self.linkedin_task4, self.linkedin_task5,
        ) if link]

    @property
    def github_links(self) -> list:
        return [link for link in (
            self.github_task1, self.github_task2, self.github_task3,
            self.github_task4, self.github_task5,
        ) if link]

    def to_dict(self) -> dict:
        data = self.base_dict()
        data.update({
            "tasksPerformed": self.tasks_performed,
            "linkedinLinks": self.linkedin_links,
            "githubLinks": self.github_links,
            "hostedWebsite": self.hosted_website,
            "experienceLink": self.experience_link,
            "donation": self.donation,
            "paymentStatus": self.payment_status,
        })
        return data

    def to_public_dict(self) -> dict:
        """Fields shown on the public verification page"""
        return {
            "submissionId": self.submission_id,
            "candidateName": self.candidate_name,
            "domain": self.domain,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "tasksPerformed": self.tasks_performed,
            "issuedAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Certificate {self.submission_id} - {self.candidate_name}>"
