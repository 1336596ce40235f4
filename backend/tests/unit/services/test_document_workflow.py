"""
Unit Tests for the generate workflow (pending -> render -> upload -> complete)
"""
import pytest
from datetime import date, datetime
from unittest.mock import AsyncMock, Mock, patch

from app.core.config import settings
from app.core.logging_config import logger
from app.core.exceptions import GenerationInProgressError, InvalidDateError, S3UploadError
from app.models.certificate import Certificate
from app.models.offer_letter import OfferLetter
from app.services.document_workflow import (
    CERTIFICATE_ROUTES,
    OFFER_LETTER_ROUTES,
    DocumentWorkflow,
    certificate_fields,
    offer_letter_fields,
)
from app.services.submission_repository import SubmissionRepository


def fields_for(submission_id: str) -> dict:
    return offer_letter_fields(
        {
            "submission_id": submission_id,
            "first_name": "Jane",
            "last_name": "Doe",
            "domain": "Web Development",
            "date_time": "2025-03-05T00:00:00Z",
        },
        "billing_cycle",
    )


def make_workflow(db_session, storage, render=None) -> DocumentWorkflow:
    return DocumentWorkflow(
        repository=SubmissionRepository(db_session, OfferLetter),
        storage=storage,
        render=render or AsyncMock(return_value=b"%PDF-1.4 test"),
        folder="internship-offer-letters",
    )


def miss_first_lookup():
    """The first lookup misses, as if a concurrent insert had not committed yet"""
    real_find = SubmissionRepository.find_by_submission_id
    calls = []

    async def find(self, submission_id):
        calls.append(submission_id)
        if len(calls) == 1:
            return None
        return await real_find(self, submission_id)

    return patch.object(SubmissionRepository, "find_by_submission_id", find)


class TestFieldMapping:

    def test_offer_letter_period_is_computed(self):
        fields = fields_for("abc-1")

        assert fields["start_date"] == date(2025, 3, 15)
        assert fields["end_date"] == date(2025, 4, 14)
        assert fields["email"] == ""

    def test_certificate_dates_come_from_caller(self):
        fields = certificate_fields({
            "submission_id": "c-1",
            "first_name": "Jane",
            "last_name": "Doe",
            "domain": "Data Science",
            "start_date": "01/02/2025",
            "end_date": "2025-02-28T00:00:00Z",
            "tasks_performed": "3 tasks",
            "status": "PAID",
        })

        assert fields["start_date"] == date(2025, 2, 1)
        assert fields["end_date"] == date(2025, 2, 28)
        assert fields["tasks_performed"] == 3
        assert fields["payment_status"] == "PAID"
        assert fields["linkedin_task1"] is None

    def test_tasks_without_leading_number_default_to_zero(self):
        fields = certificate_fields({
            "submission_id": "c-2",
            "first_name": "Jane",
            "last_name": "Doe",
            "domain": "Data Science",
            "start_date": "2025-02-01",
            "end_date": "2025-02-28",
            "tasks_performed": "not a number",
        })

        assert fields["tasks_performed"] == 0

    def test_unparseable_submission_time_falls_back_to_server_time(self):
        before = datetime.now()
        with patch.object(logger, "warning") as warning:
            fields = offer_letter_fields(
                {
                    "submission_id": "t-1",
                    "first_name": "Jane",
                    "last_name": "Doe",
                    "domain": "Web Development",
                    "date_time": "yesterday-ish",
                },
                "billing_cycle",
            )

        assert warning.call_count == 1
        assert "yesterday-ish" in warning.call_args[0][0]
        assert before <= fields["submission_date_time"] <= datetime.now()

    def test_routes_build_public_urls(self):
        assert OFFER_LETTER_ROUTES.view_url(settings, "abc-1") == \
            "http://test/api/v1/offer-letter/view-offer-letter/abc-1"
        assert CERTIFICATE_ROUTES.download_url(settings, "c-1") == \
            "http://test/api/v1/certificate/download-certificate/c-1"


class TestGenerate:

    @pytest.mark.asyncio
    async def test_second_call_returns_existing(self, db_session, storage):
        render = AsyncMock(return_value=b"%PDF-1.4 test")
        workflow = make_workflow(db_session, storage, render)

        first = await workflow.generate("idem-1", lambda: fields_for("idem-1"))
        second = await workflow.generate("idem-1", lambda: fields_for("idem-1"))

        assert first.created is True
        assert second.created is False
        assert second.record.document_url == first.record.document_url
        assert render.await_count == 1
        assert storage.uploads == ["internship-offer-letters/Internship_Offer_Letter_Jane_Doe_idem-1.pdf"]

    @pytest.mark.asyncio
    async def test_failed_upload_leaves_resumable_pending_record(self, db_session, storage):
        workflow = make_workflow(db_session, storage)
        storage.fail_uploads = True

        with pytest.raises(S3UploadError):
            await workflow.generate("resume-1", lambda: fields_for("resume-1"))

        pending = await workflow.repository.find_by_submission_id("resume-1")
        assert pending.status == "pending"

        storage.fail_uploads = False
        result = await workflow.generate("resume-1", lambda: fields_for("resume-1"))

        assert result.created is True
        assert result.record.is_complete
        assert result.record.start_date == date(2025, 3, 15)

    @pytest.mark.asyncio
    async def test_completion_failure_deletes_uploaded_object(self, db_session, storage):
        workflow = make_workflow(db_session, storage)

        with patch.object(SubmissionRepository, "mark_complete", AsyncMock(side_effect=RuntimeError("db gone"))):
            with pytest.raises(RuntimeError):
                await workflow.generate("comp-1", lambda: fields_for("comp-1"))

        assert storage.deleted == ["internship-offer-letters/Internship_Offer_Letter_Jane_Doe_comp-1.pdf"]
        assert storage.objects == {}

    @pytest.mark.asyncio
    async def test_lost_insert_race_returns_winner(self, db_session, storage):
        workflow = make_workflow(db_session, storage)
        winner = await workflow.generate("race-1", lambda: fields_for("race-1"))
        winner_url = winner.record.document_url

        with miss_first_lookup():
            result = await workflow.generate("race-1", lambda: fields_for("race-1"))

        assert result.created is False
        assert result.record.document_url == winner_url
        assert len(storage.uploads) == 1

    @pytest.mark.asyncio
    async def test_existing_record_skips_field_building(self, db_session, storage):
        workflow = make_workflow(db_session, storage)
        first = await workflow.generate("skip-1", lambda: fields_for("skip-1"))
        build_fields = Mock(side_effect=InvalidDateError("start_date", "March 15, 2025"))

        second = await workflow.generate("skip-1", build_fields)

        assert second.created is False
        assert second.record.document_url == first.record.document_url
        build_fields.assert_not_called()

    @pytest.mark.asyncio
    async def test_lost_race_without_visible_winner_is_in_progress(self, db_session, storage):
        workflow = make_workflow(db_session, storage)
        await workflow.repository.create_pending(fields_for("race-2"))

        with patch.object(SubmissionRepository, "find_by_submission_id",
                          AsyncMock(side_effect=[None, None])):
            with pytest.raises(GenerationInProgressError):
                await workflow.generate("race-2", lambda: fields_for("race-2"))

    @pytest.mark.asyncio
    async def test_lost_race_to_unfinished_winner_is_in_progress(self, db_session, storage):
        workflow = make_workflow(db_session, storage)
        await workflow.repository.create_pending(fields_for("race-3"))

        with miss_first_lookup():
            with pytest.raises(GenerationInProgressError) as exc_info:
                await workflow.generate("race-3", lambda: fields_for("race-3"))

        assert exc_info.value.status_code == 409
        assert storage.uploads == []

    def test_keys_are_sanitized(self, storage):
        workflow = DocumentWorkflow(
            repository=SubmissionRepository(None, Certificate),
            storage=storage,
            render=AsyncMock(),
            folder="internship-certificates",
        )
        record = Certificate(submission_id="x/1", first_name="Anne Marie", last_name="O'Neil")

        assert workflow.document_key(record) == \
            "internship-certificates/Internship_Certificate_Anne_Marie_O_Neil_x_1.pdf"
