"""
Integration Tests for the offer letter API
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from app.models.offer_letter import OfferLetter
from app.services.document_workflow import offer_letter_fields
from app.services.email_service import DEFAULT_TASK_LINKS
from app.services.submission_repository import SubmissionRepository

BASE = "/api/v1/offer-letter"

ABC_1 = {
    "id": "abc-1",
    "first_name": "Jane",
    "last_name": "Doe",
    "domain": "Web Development",
    "date_time": "2025-03-05T00:00:00Z",
}


async def generate(client: AsyncClient, payload: dict, **kwargs):
    return await client.post(f"{BASE}/generate-offer-letter", json=payload, **kwargs)


class TestGenerateOfferLetter:

    @pytest.mark.asyncio
    async def test_generate_computes_period_and_urls(self, client: AsyncClient, storage):
        response = await generate(client, ABC_1)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["submissionId"] == "abc-1"
        assert data["candidateName"] == "Jane Doe"
        assert data["startDate"] == "15/03/2025"
        assert data["endDate"] == "14/04/2025"
        assert "abc-1" in data["offerLetterUrl"]
        assert "abc-1" in data["viewUrl"]
        assert data["taskLink"] == DEFAULT_TASK_LINKS["Web Development"]
        assert data["documentUrl"] in [storage.public_url(key) for key in storage.uploads]
        assert "message" not in data

    @pytest.mark.asyncio
    async def test_generate_is_idempotent(self, client: AsyncClient, storage, db_session):
        first = (await generate(client, ABC_1)).json()
        second = (await generate(client, ABC_1)).json()

        assert second["message"] == "Offer letter already exists"
        assert second["offerLetterUrl"] == first["offerLetterUrl"]
        assert second["viewUrl"] == first["viewUrl"]
        assert second["documentUrl"] == first["documentUrl"]
        assert len(storage.uploads) == 1

        count = await db_session.scalar(select(func.count()).select_from(OfferLetter))
        assert count == 1

    @pytest.mark.asyncio
    async def test_form_encoded_with_aliases(self, client: AsyncClient):
        response = await client.post(
            f"{BASE}/generate-offer-letter",
            data={"submissionId": "form-1", "firstName": "asha", "lastName": "rao", "domain": "Data Science"},
        )

        assert response.status_code == 200
        assert response.json()["submissionId"] == "form-1"

    @pytest.mark.asyncio
    async def test_nested_data_envelope(self, client: AsyncClient):
        response = await generate(client, {"data": {**ABC_1, "id": "nested-1"}})

        assert response.status_code == 200
        assert response.json()["submissionId"] == "nested-1"

    @pytest.mark.asyncio
    async def test_missing_domain(self, client: AsyncClient, storage):
        payload = {key: value for key, value in ABC_1.items() if key != "domain"}
        response = await generate(client, payload)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Missing required fields"
        assert body["missing"] == ["domain"]
        assert "domain" in body["required"]
        assert body["received"]["submission_id"] == "abc-1"
        assert "payload" not in body
        assert storage.uploads == []

    @pytest.mark.asyncio
    async def test_unparseable_body_is_missing_everything(self, client: AsyncClient):
        response = await client.post(
            f"{BASE}/generate-offer-letter",
            content=b"{{{ not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["missing"] == ["submission_id", "first_name", "last_name", "domain"]

    @pytest.mark.asyncio
    async def test_upload_failure_is_502(self, client: AsyncClient, storage):
        storage.fail_uploads = True
        response = await generate(client, ABC_1)

        assert response.status_code == 502
        assert response.json()["code"] == "S3_UPLOAD_FAILED"

        storage.fail_uploads = False
        retry = await generate(client, ABC_1)
        assert retry.status_code == 200
        assert "message" not in retry.json()


class TestReadEndpoints:

    @pytest.mark.asyncio
    async def test_details(self, client: AsyncClient):
        await generate(client, ABC_1)
        response = await client.get(f"{BASE}/get-offer-letter-details/abc-1")

        assert response.status_code == 200
        offer = response.json()["offerLetter"]
        assert offer["submissionId"] == "abc-1"
        assert offer["startDate"] == "2025-03-15"

    @pytest.mark.asyncio
    async def test_details_unknown(self, client: AsyncClient):
        response = await client.get(f"{BASE}/get-offer-letter-details/nope")

        assert response.status_code == 404
        assert response.json()["error"] == "Offer letter not found"

    @pytest.mark.asyncio
    async def test_download_vs_view_disposition(self, client: AsyncClient):
        await generate(client, ABC_1)

        download = await client.get(f"{BASE}/download-offer-letter/abc-1")
        view = await client.get(f"{BASE}/view-offer-letter/abc-1")

        assert download.status_code == 200
        assert download.headers["content-type"] == "application/pdf"
        assert download.headers["content-disposition"].startswith("attachment")
        assert "Internship_Offer_Letter_Jane_Doe_abc-1.pdf" in download.headers["content-disposition"]
        assert view.headers["content-disposition"].startswith("inline")
        assert download.content.startswith(b"%PDF")
        assert view.content == download.content
        assert view.headers["x-frame-options"] == "SAMEORIGIN"

    @pytest.mark.asyncio
    async def test_download_unknown(self, client: AsyncClient):
        response = await client.get(f"{BASE}/download-offer-letter/nope")
        assert response.status_code == 404


class TestDashboard:

    @pytest.mark.asyncio
    async def test_list_requires_passcode(self, client: AsyncClient):
        response = await client.get(f"{BASE}/list-offer-letters")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_list_with_wrong_passcode(self, client: AsyncClient):
        response = await client.get(f"{BASE}/list-offer-letters", cookies={"access_passcode": "nope"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_list_and_filter_approved(self, client: AsyncClient, passcode_cookie):
        for i in range(3):
            await generate(client, {**ABC_1, "id": f"list-{i}"})
        approve = await client.patch(f"{BASE}/approve/list-1", cookies=passcode_cookie)
        assert approve.status_code == 200

        everything = (await client.get(f"{BASE}/list-offer-letters", cookies=passcode_cookie)).json()
        assert everything["success"] is True
        assert everything["pagination"]["total"] == 3

        approved = (await client.get(
            f"{BASE}/list-offer-letters", params={"approved": "true"}, cookies=passcode_cookie
        )).json()
        assert [o["submissionId"] for o in approved["offerLetters"]] == ["list-1"]
        assert all(o["approved"] for o in approved["offerLetters"])

        paged = (await client.get(
            f"{BASE}/list-offer-letters", params={"page": 2, "limit": 2}, cookies=passcode_cookie
        )).json()
        assert len(paged["offerLetters"]) == 1
        assert paged["pagination"] == {
            "page": 2, "limit": 2, "total": 3, "totalPages": 2, "hasNext": False, "hasPrev": True,
        }

    @pytest.mark.asyncio
    async def test_search(self, client: AsyncClient, passcode_cookie):
        await generate(client, {**ABC_1, "id": "s-1", "first_name": "Zelda"})
        await generate(client, {**ABC_1, "id": "s-2"})

        data = (await client.get(
            f"{BASE}/list-offer-letters", params={"search": "zeld"}, cookies=passcode_cookie
        )).json()

        assert [o["submissionId"] for o in data["offerLetters"]] == ["s-1"]

    @pytest.mark.asyncio
    async def test_approve_twice_and_status(self, client: AsyncClient, passcode_cookie):
        await generate(client, ABC_1)

        status = (await client.get(f"{BASE}/approve/abc-1")).json()
        assert status["isApproved"] is False

        for _ in range(2):
            response = await client.patch(f"{BASE}/approve/abc-1", cookies=passcode_cookie)
            assert response.status_code == 200
            assert response.json()["offerLetter"]["approved"] is True

        status = (await client.get(f"{BASE}/approve/abc-1")).json()
        assert status["isApproved"] is True

    @pytest.mark.asyncio
    async def test_approve_unknown(self, client: AsyncClient, passcode_cookie):
        response = await client.patch(f"{BASE}/approve/ghost", cookies=passcode_cookie)
        assert response.status_code == 404

        status = await client.get(f"{BASE}/approve/ghost")
        assert status.status_code == 404

    @pytest.mark.asyncio
    async def test_approve_pending_letter_is_not_found(self, client: AsyncClient, passcode_cookie, db_session):
        await SubmissionRepository(db_session, OfferLetter).create_pending(
            offer_letter_fields({**ABC_1, "submission_id": "pend-1"}, "billing_cycle")
        )

        response = await client.patch(f"{BASE}/approve/pend-1", cookies=passcode_cookie)
        assert response.status_code == 404

        status = await client.get(f"{BASE}/approve/pend-1")
        assert status.status_code == 404

    @pytest.mark.asyncio
    async def test_preview_returns_inline_pdf_without_storing(self, client: AsyncClient, storage, passcode_cookie):
        response = await client.post(f"{BASE}/preview-offer-letter", json=ABC_1, cookies=passcode_cookie)

        assert response.status_code == 200
        assert response.headers["content-disposition"].startswith("inline")
        assert response.content.startswith(b"%PDF")
        assert storage.uploads == []

        details = await client.get(f"{BASE}/get-offer-letter-details/abc-1")
        assert details.status_code == 404


class TestNotifications:

    @pytest.mark.asyncio
    async def test_send_offer_letter(self, client: AsyncClient, email_service):
        response = await client.get(f"{BASE}/send-offer-letter", params={
            "id": "abc-1",
            "candidateName": "Jane Doe",
            "email": "jane@example.com",
            "offerLetterUrl": "http://test/api/v1/offer-letter/download-offer-letter/abc-1",
            "startDate": "15/03/2025",
            "endDate": "14/04/2025",
            "domain": "Data Science",
        })

        assert response.status_code == 200
        assert response.json() == {"sent": True}
        assert email_service.sent[0]["to"] == "jane@example.com"
        assert DEFAULT_TASK_LINKS["Data Science"] in email_service.sent[0]["html"]

    @pytest.mark.asyncio
    async def test_send_offer_letter_invalid_email(self, client: AsyncClient, email_service):
        response = await client.get(f"{BASE}/send-offer-letter", params={
            "id": "abc-1", "candidateName": "Jane Doe", "email": "jane-at-example",
        })

        assert response.status_code == 400
        assert email_service.sent == []

    @pytest.mark.asyncio
    async def test_send_offer_letter_missing_fields(self, client: AsyncClient):
        response = await client.get(f"{BASE}/send-offer-letter", params={"id": "abc-1"})

        assert response.status_code == 400
        assert response.json()["missing"] == ["candidateName", "email"]

    @pytest.mark.asyncio
    async def test_transport_failure_is_502(self, client: AsyncClient, email_service):
        email_service.transport_ok = False
        response = await client.get(f"{BASE}/send-application-email", params={
            "id": "abc-1", "firstName": "Jane", "email": "jane@example.com", "domain": "Data Science",
        })

        assert response.status_code == 502
        assert response.json()["code"] == "EMAIL_DELIVERY_FAILED"

    @pytest.mark.asyncio
    async def test_send_application_email(self, client: AsyncClient, email_service):
        response = await client.get(f"{BASE}/send-application-email", params={
            "id": "abc-1", "firstName": "Jane", "email": "jane@example.com", "domain": "Data Science",
        })

        assert response.status_code == 200
        assert "Data Science" in email_service.sent[0]["subject"]
