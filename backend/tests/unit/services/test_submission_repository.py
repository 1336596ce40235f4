"""
Unit Tests for SubmissionRepository
"""
import pytest
from datetime import date, datetime, timedelta
from unittest.mock import AsyncMock

from faker import Faker
from sqlalchemy.exc import OperationalError

from app.core.exceptions import DatabaseUnavailableError, DuplicateSubmissionError, SubmissionNotFoundError
from app.models.certificate import Certificate
from app.models.offer_letter import OfferLetter
from app.services.submission_repository import ALL_DOMAINS, ListFilters, SubmissionRepository

fake = Faker()


def offer_fields(submission_id: str, **overrides) -> dict:
    fields = {
        "submission_id": submission_id,
        "first_name": fake.first_name(),
        "last_name": fake.last_name(),
        "email": fake.email(),
        "domain": "Web Development",
        "start_date": date(2025, 3, 15),
        "end_date": date(2025, 4, 14),
        "submission_date_time": datetime(2025, 3, 5),
    }
    fields.update(overrides)
    return fields


async def create_complete(repo: SubmissionRepository, submission_id: str, **overrides):
    record = await repo.create_pending(offer_fields(submission_id, **overrides))
    return await repo.mark_complete(record, f"http://storage.test/{submission_id}.pdf")


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_pending_record_is_hidden_from_reads(self, db_session):
        repo = SubmissionRepository(db_session, OfferLetter)
        await repo.create_pending(offer_fields("p-1"))

        assert (await repo.find_by_submission_id("p-1")).status == "pending"
        with pytest.raises(SubmissionNotFoundError):
            await repo.get_complete("p-1")

    @pytest.mark.asyncio
    async def test_duplicate_insert_raises(self, db_session):
        repo = SubmissionRepository(db_session, OfferLetter)
        await repo.create_pending(offer_fields("dup-1"))

        with pytest.raises(DuplicateSubmissionError):
            await repo.create_pending(offer_fields("dup-1"))

        assert await repo.find_by_submission_id("dup-1") is not None

    @pytest.mark.asyncio
    async def test_document_url_is_set_once(self, db_session):
        repo = SubmissionRepository(db_session, OfferLetter)
        record = await create_complete(repo, "u-1")

        record = await repo.mark_complete(record, "http://storage.test/other.pdf")

        assert record.document_url == "http://storage.test/u-1.pdf"
        assert record.is_complete

    @pytest.mark.asyncio
    async def test_approve_is_idempotent(self, db_session):
        repo = SubmissionRepository(db_session, OfferLetter)
        await create_complete(repo, "a-1")

        first = await repo.approve("a-1")
        second = await repo.approve("a-1")

        assert first.approved is True
        assert second.approved is True

    @pytest.mark.asyncio
    async def test_approve_unknown_id(self, db_session):
        repo = SubmissionRepository(db_session, Certificate)

        with pytest.raises(SubmissionNotFoundError) as exc_info:
            await repo.approve("missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Certificate not found"

    @pytest.mark.asyncio
    async def test_approve_pending_record_is_not_found(self, db_session):
        repo = SubmissionRepository(db_session, OfferLetter)
        await repo.create_pending(offer_fields("pend-1"))

        with pytest.raises(SubmissionNotFoundError):
            await repo.approve("pend-1")

        assert (await repo.find_by_submission_id("pend-1")).approved is False


class TestListing:

    @pytest.mark.asyncio
    async def test_filters_and_ordering(self, db_session):
        repo = SubmissionRepository(db_session, OfferLetter)
        now = datetime.utcnow()
        await create_complete(repo, "l-1", domain="Data Science", first_name="Qwertina",
                              created_at=now - timedelta(days=2))
        await create_complete(repo, "l-2", domain="Web Development", first_name="Ravi",
                              created_at=now - timedelta(days=1))
        await create_complete(repo, "l-3", domain="Web Development", first_name="Meera",
                              created_at=now)
        await repo.create_pending(offer_fields("l-4", domain="Web Development"))
        await repo.approve("l-2")

        records, total = await repo.list(ListFilters())
        assert total == 3
        assert [r.submission_id for r in records] == ["l-3", "l-2", "l-1"]

        records, total = await repo.list(ListFilters(domain="Web Development"))
        assert total == 2

        records, total = await repo.list(ListFilters(domain=ALL_DOMAINS))
        assert total == 3

        records, total = await repo.list(ListFilters(search="QWERTIN"))
        assert [r.submission_id for r in records] == ["l-1"]

        records, total = await repo.list(ListFilters(approved=True))
        assert [r.submission_id for r in records] == ["l-2"]

        records, total = await repo.list(ListFilters(approved=False))
        assert all(not r.approved for r in records)
        assert total == 2

    @pytest.mark.asyncio
    async def test_offset_pagination(self, db_session):
        repo = SubmissionRepository(db_session, OfferLetter)
        for i in range(5):
            await create_complete(repo, f"pg-{i}")

        records, total = await repo.list(ListFilters(page=2, page_size=2))

        assert total == 5
        assert len(records) == 2

    @pytest.mark.asyncio
    async def test_search_treats_wildcards_literally(self, db_session):
        repo = SubmissionRepository(db_session, OfferLetter)
        await create_complete(repo, "w-1", first_name="Jane", last_name="Doe", email="jane@example.com")
        await create_complete(repo, "w-2", first_name="Bob", last_name="Stone", email="bob@example.com")
        await create_complete(repo, "w-3", first_name="Ann_Marie", last_name="Lee", email="ann@example.com")

        records, total = await repo.list(ListFilters(search="_"))
        assert [r.submission_id for r in records] == ["w-3"]

        records, total = await repo.list(ListFilters(search="%"))
        assert total == 0


@pytest.mark.asyncio
async def test_connection_failure_surfaces_as_503():
    session = AsyncMock()
    session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))
    repo = SubmissionRepository(session, OfferLetter)

    with pytest.raises(DatabaseUnavailableError) as exc_info:
        await repo.get_complete("any")

    assert exc_info.value.status_code == 503
