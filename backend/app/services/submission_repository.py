"""
Submission Repository - data access for offer letters and certificates

Both document types share the same lifecycle, so one repository class
serves either model:

    repo = SubmissionRepository(db, OfferLetter)
    record = await repo.get_complete("abc-1")
"""

from dataclasses import dataclass
from functools import wraps
from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    DatabaseUnavailableError,
    DuplicateSubmissionError,
    SubmissionNotFoundError,
)
from app.core.logging_config import logger
from app.models.submission_record import DocumentStatus

ModelT = TypeVar("ModelT")

ALL_DOMAINS = "All domains"


def surface_outages(func):
    """Turn connection-level database failures into DatabaseUnavailableError"""
    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except (OperationalError, InterfaceError) as e:
            logger.error(f"Database unavailable in {func.__name__}: {e}")
            raise DatabaseUnavailableError()
    return wrapper


@dataclass
class ListFilters:
    """Dashboard list/search filters"""
    page: int = 1
    page_size: int = 10
    domain: Optional[str] = None
    search: Optional[str] = None
    approved: Optional[bool] = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class SubmissionRepository(Generic[ModelT]):
    """find / create / complete / approve / list over one document model"""

    def __init__(self, db: AsyncSession, model: Type[ModelT]):
        self.db = db
        self.model = model

    @property
    def label(self) -> str:
        return getattr(self.model, "LABEL", self.model.__name__)

    def _complete_only(self):
        return (self.model.status == DocumentStatus.COMPLETE.value) & (self.model.document_url.isnot(None))

    @surface_outages
    async def find_by_submission_id(self, submission_id: str) -> Optional[ModelT]:
        """Any record for the id, pending or complete"""
        result = await self.db.execute(
            select(self.model).where(self.model.submission_id == submission_id)
        )
        return result.scalar_one_or_none()

    @surface_outages
    async def get_complete(self, submission_id: str) -> ModelT:
        """Complete record for the id, 404 otherwise"""
        result = await self.db.execute(
            select(self.model).where(
                self.model.submission_id == submission_id,
                self._complete_only(),
            )
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise SubmissionNotFoundError(self.label, submission_id)
        return record

    @surface_outages
    async def create_pending(self, fields: Dict[str, Any]) -> ModelT:
        """
        Insert a pending record.

        The row is committed immediately so a crash between upload and
        completion leaves a resumable record behind.
        """
        record = self.model(**fields, status=DocumentStatus.PENDING.value)
        self.db.add(record)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateSubmissionError(fields["submission_id"])
        await self.db.refresh(record)
        return record

    @surface_outages
    async def mark_complete(self, record: ModelT, url: str) -> ModelT:
        """Attach the storage URL (first one wins) and mark complete"""
        if not record.document_url:
            record.document_url = url
        record.status = DocumentStatus.COMPLETE.value
        await self.db.commit()
        await self.db.refresh(record)
        return record

    @surface_outages
    async def approve(self, submission_id: str) -> ModelT:
        """Set approved on a complete record; approving twice is a no-op"""
        record = await self.get_complete(submission_id)
        if not record.approved:
            record.approved = True
            await self.db.commit()
            await self.db.refresh(record)
            logger.log_document_event(self.model.DOCUMENT_TYPE, "approved", submission_id)
        return record

    @surface_outages
    async def list(self, filters: ListFilters) -> Tuple[List[ModelT], int]:
        """Complete records matching the filters, newest first, plus the total count"""
        conditions = [self._complete_only()]

        if filters.domain and filters.domain != ALL_DOMAINS:
            conditions.append(self.model.domain == filters.domain)

        if filters.search:
            # Literal substring: % and _ typed by the user are escaped
            term = filters.search.strip().lower()
            conditions.append(or_(*(
                func.lower(column).contains(term, autoescape=True)
                for column in (
                    self.model.first_name,
                    self.model.last_name,
                    self.model.email,
                    self.model.submission_id,
                )
            )))

        if filters.approved is not None:
            conditions.append(self.model.approved.is_(filters.approved))

        count_result = await self.db.execute(
            select(func.count()).select_from(self.model).where(*conditions)
        )
        total = count_result.scalar() or 0

        result = await self.db.execute(
            select(self.model)
            .where(*conditions)
            .order_by(self.model.created_at.desc())
            .offset(filters.offset)
            .limit(filters.page_size)
        )
        return list(result.scalars().all()), total
