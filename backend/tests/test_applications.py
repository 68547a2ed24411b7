"""
Tests for Stall Application Endpoints

Covers submission, visibility and the admin decisions, including the
approval that creates the stall and promotes the applicant.
"""

import pytest
from sqlalchemy import func, select

from buzzarfeed.core.config import settings
from buzzarfeed.core.constants import ApplicationStatus, ErrorMessages, UserType
from buzzarfeed.models import FoodStall, User

API = "/api/v1/applications"


async def submit(client, headers, payload):
    response = await client.post(API, json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestSubmission:
    """Test suite for submitting and editing applications"""

    @pytest.mark.asyncio
    async def test_submit(self, client, enthusiast, enthusiast_headers, application_payload):
        application = await submit(client, enthusiast_headers, application_payload)

        assert application["status"] == ApplicationStatus.PENDING
        assert application["categories"] == ["snacks", "pastries"]
        assert application["applicant_name"] == enthusiast.name
        assert application["stall_id"] is None

    @pytest.mark.asyncio
    async def test_one_pending_application(self, client, enthusiast_headers, application_payload):
        await submit(client, enthusiast_headers, application_payload)

        response = await client.post(API, json=application_payload, headers=enthusiast_headers)

        assert response.status_code == 400
        assert response.json()["message"] == ErrorMessages.PENDING_APPLICATION_EXISTS

    @pytest.mark.asyncio
    async def test_unknown_category(self, client, enthusiast_headers, application_payload):
        application_payload["categories"] = "Snacks, sushi"

        response = await client.post(API, json=application_payload, headers=enthusiast_headers)

        assert response.status_code == 400
        assert "categories" in response.json()["errors"]

    @pytest.mark.asyncio
    async def test_requires_login(self, client, application_payload):
        response = await client.post(API, json=application_payload)

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_edit_pending(self, client, enthusiast_headers, application_payload):
        application = await submit(client, enthusiast_headers, application_payload)

        response = await client.put(f"{API}/{application['id']}", json={"location": "Stall 14, Night Market"},
                                    headers=enthusiast_headers)

        assert response.status_code == 200
        assert response.json()["data"]["location"] == "Stall 14, Night Market"
        assert response.json()["data"]["stall_name"] == application_payload["stall_name"]

    @pytest.mark.asyncio
    async def test_cannot_edit_after_decision(self, client, enthusiast_headers, admin_headers,
                                              application_payload):
        application = await submit(client, enthusiast_headers, application_payload)
        await client.post(f"{API}/{application['id']}/reject", json={"reason": "Incomplete"}, headers=admin_headers)

        response = await client.put(f"{API}/{application['id']}", json={"location": "Elsewhere"},
                                    headers=enthusiast_headers)

        assert response.status_code == 400


class TestVisibility:
    """Applicants see their own applications; admins see all"""

    @pytest.mark.asyncio
    async def test_listing(self, client, enthusiast_headers, other_headers, admin_headers, application_payload):
        mine = await submit(client, enthusiast_headers, application_payload)
        theirs = await submit(client, other_headers, {**application_payload, "stall_name": "Tita's Taho"})

        own = (await client.get(API, headers=enthusiast_headers)).json()
        assert [a["id"] for a in own["data"]] == [mine["id"]]

        every = (await client.get(API, headers=admin_headers)).json()
        assert {a["id"] for a in every["data"]} == {mine["id"], theirs["id"]}
        assert every["pagination"]["perPage"] == 20

    @pytest.mark.asyncio
    async def test_status_filter(self, client, enthusiast_headers, other_headers, admin_headers,
                                 application_payload):
        pending = await submit(client, enthusiast_headers, application_payload)
        rejected = await submit(client, other_headers, application_payload)
        await client.post(f"{API}/{rejected['id']}/reject", json={"reason": "No permit"}, headers=admin_headers)

        body = (await client.get(API, params={"status": "pending"}, headers=admin_headers)).json()

        assert [a["id"] for a in body["data"]] == [pending["id"]]

    @pytest.mark.asyncio
    async def test_other_users_application_is_forbidden(self, client, enthusiast_headers, other_headers,
                                                        application_payload):
        application = await submit(client, enthusiast_headers, application_payload)

        response = await client.get(f"{API}/{application['id']}", headers=other_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_application(self, client, admin_headers):
        response = await client.get(f"{API}/999", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["message"] == ErrorMessages.APPLICATION_NOT_FOUND


class TestDecisions:
    """Test suite for approve, reject and archive"""

    @pytest.mark.asyncio
    async def test_approve_creates_stall_and_promotes(self, client, enthusiast, enthusiast_headers, admin_headers,
                                                      application_payload, mailer, db_session):
        application = await submit(client, enthusiast_headers, application_payload)

        response = await client.post(f"{API}/{application['id']}/approve", json={"review_notes": "Welcome"},
                                     headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["application"]["status"] == ApplicationStatus.APPROVED
        assert data["application"]["stall_id"] == data["stall_id"]

        stall = (await client.get(f"/api/v1/stalls/{data['stall_id']}")).json()["data"]
        assert stall["name"] == application_payload["stall_name"]
        assert stall["address"] == application_payload["location"]
        assert stall["categories"] == ["snacks", "pastries"]
        assert stall["owner_id"] == enthusiast.id

        user = await db_session.get(User, enthusiast.id)
        await db_session.refresh(user)
        assert user.user_type == UserType.FOOD_STALL_OWNER

        assert mailer.templates() == ["application_approved"]

    @pytest.mark.asyncio
    async def test_approve_twice(self, client, enthusiast_headers, admin_headers, application_payload, db_session):
        application = await submit(client, enthusiast_headers, application_payload)
        await client.post(f"{API}/{application['id']}/approve", headers=admin_headers)

        response = await client.post(f"{API}/{application['id']}/approve", headers=admin_headers)

        assert response.status_code == 400
        count = (await db_session.execute(select(func.count(FoodStall.id)))).scalar_one()
        assert count == 1

    @pytest.mark.asyncio
    async def test_reject(self, client, enthusiast, enthusiast_headers, admin_headers, application_payload,
                          mailer):
        application = await submit(client, enthusiast_headers, application_payload)

        response = await client.post(f"{API}/{application['id']}/reject", json={"reason": "Missing permit"},
                                     headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == ApplicationStatus.REJECTED
        assert data["review_notes"] == "Missing permit"

        emails = mailer.to(enthusiast.email)
        assert [e["template"] for e in emails] == ["application_declined"]
        assert "Missing permit" in emails[0]["body"]

    @pytest.mark.asyncio
    async def test_reject_requires_reason(self, client, enthusiast_headers, admin_headers, application_payload):
        application = await submit(client, enthusiast_headers, application_payload)

        response = await client.post(f"{API}/{application['id']}/reject", json={}, headers=admin_headers)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_rejected_applicant_may_apply_again(self, client, enthusiast_headers, admin_headers,
                                                      application_payload):
        application = await submit(client, enthusiast_headers, application_payload)
        await client.post(f"{API}/{application['id']}/reject", json={"reason": "Blurry permit"}, headers=admin_headers)

        await submit(client, enthusiast_headers, application_payload)

    @pytest.mark.asyncio
    async def test_archive_then_final(self, client, enthusiast_headers, admin_headers, application_payload):
        application = await submit(client, enthusiast_headers, application_payload)

        archived = await client.post(f"{API}/{application['id']}/archive", headers=admin_headers)
        assert archived.status_code == 200
        assert archived.json()["data"]["status"] == ApplicationStatus.ARCHIVED

        response = await client.post(f"{API}/{application['id']}/approve", headers=admin_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_decisions_require_admin(self, client, enthusiast_headers, owner_headers, application_payload):
        application = await submit(client, enthusiast_headers, application_payload)

        response = await client.post(f"{API}/{application['id']}/approve", headers=owner_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_decision_is_logged(self, client, enthusiast_headers, admin, admin_headers, application_payload):
        application = await submit(client, enthusiast_headers, application_payload)
        await client.post(f"{API}/{application['id']}/approve", headers=admin_headers)

        logs = (await client.get("/api/v1/admin/logs", params={"entity_type": "application"},
                                 headers=admin_headers)).json()["data"]

        assert len(logs) == 1
        assert logs[0]["admin_id"] == admin.id
        assert logs[0]["entity_id"] == application["id"]


PDF = ("bir.pdf", b"%PDF-1.4 registration certificate", "application/pdf")
PNG = ("logo.png", b"\x89PNG\r\n\x1a\n turon logo", "image/png")


@pytest.fixture()
def upload_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    return tmp_path


async def upload(client, headers, application_id: int, document: str, file):
    return await client.put(f"{API}/{application_id}/documents/{document}", files={"file": file}, headers=headers)


class TestDocuments:
    """Test suite for uploading, downloading and cleaning up application files"""

    @pytest.mark.asyncio
    async def test_upload_and_download(self, client, enthusiast_headers, admin_headers, application_payload,
                                       upload_dir):
        application = await submit(client, enthusiast_headers, application_payload)

        response = await upload(client, enthusiast_headers, application["id"], "bir", PDF)

        assert response.status_code == 200
        bir_path = response.json()["data"]["bir_path"]
        assert bir_path.startswith(f"applications/{application['id']}/bir_")
        assert bir_path.endswith(".pdf")
        assert (upload_dir / bir_path).read_bytes() == PDF[1]

        download = await client.get(f"{API}/{application['id']}/documents/bir", headers=admin_headers)
        assert download.status_code == 200
        assert download.content == PDF[1]

    @pytest.mark.asyncio
    async def test_logo_must_be_an_image(self, client, enthusiast_headers, application_payload, upload_dir):
        application = await submit(client, enthusiast_headers, application_payload)

        response = await upload(client, enthusiast_headers, application["id"], "logo", PDF)

        assert response.status_code == 400
        assert response.json()["message"] == ErrorMessages.UNSUPPORTED_FILE_TYPE
        assert not any(upload_dir.iterdir())

    @pytest.mark.asyncio
    async def test_unsupported_type(self, client, enthusiast_headers, application_payload, upload_dir):
        application = await submit(client, enthusiast_headers, application_payload)

        response = await upload(client, enthusiast_headers, application["id"], "permit",
                                ("permit.exe", b"MZ", "application/octet-stream"))

        assert response.status_code == 400
        assert "file" in response.json()["errors"]

    @pytest.mark.asyncio
    async def test_oversized_file(self, client, enthusiast_headers, application_payload, upload_dir, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 1)
        application = await submit(client, enthusiast_headers, application_payload)

        response = await upload(client, enthusiast_headers, application["id"], "dti_sec",
                                ("dti.pdf", b"%" * (1024 * 1024 + 1), "application/pdf"))

        assert response.status_code == 400
        assert response.json()["message"] == ErrorMessages.FILE_TOO_LARGE

    @pytest.mark.asyncio
    async def test_empty_file(self, client, enthusiast_headers, application_payload, upload_dir):
        application = await submit(client, enthusiast_headers, application_payload)

        response = await upload(client, enthusiast_headers, application["id"], "bir", ("bir.pdf", b"", "application/pdf"))

        assert response.status_code == 400
        assert response.json()["message"] == ErrorMessages.EMPTY_FILE

    @pytest.mark.asyncio
    async def test_unknown_document(self, client, enthusiast_headers, application_payload, upload_dir):
        application = await submit(client, enthusiast_headers, application_payload)

        response = await upload(client, enthusiast_headers, application["id"], "passport", PDF)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_only_applicant_uploads(self, client, enthusiast_headers, other_headers, application_payload,
                                          upload_dir):
        application = await submit(client, enthusiast_headers, application_payload)

        response = await upload(client, other_headers, application["id"], "bir", PDF)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_replacing_removes_previous_file(self, client, enthusiast_headers, application_payload,
                                                   upload_dir):
        application = await submit(client, enthusiast_headers, application_payload)
        first = (await upload(client, enthusiast_headers, application["id"], "logo", PNG)).json()["data"]

        second = (await upload(client, enthusiast_headers, application["id"], "logo",
                               ("logo.jpg", b"\xff\xd8\xff new logo", "image/jpeg"))).json()["data"]

        assert second["logo_path"].endswith(".jpg")
        assert not (upload_dir / first["logo_path"]).exists()
        assert (upload_dir / second["logo_path"]).exists()

    @pytest.mark.asyncio
    async def test_missing_document(self, client, enthusiast_headers, application_payload, upload_dir):
        application = await submit(client, enthusiast_headers, application_payload)

        response = await client.get(f"{API}/{application['id']}/documents/permit", headers=enthusiast_headers)

        assert response.status_code == 404
        assert response.json()["message"] == ErrorMessages.DOCUMENT_NOT_FOUND

    @pytest.mark.asyncio
    async def test_archive_deletes_files(self, client, enthusiast_headers, admin_headers, application_payload,
                                         upload_dir):
        application = await submit(client, enthusiast_headers, application_payload)
        bir_path = (await upload(client, enthusiast_headers, application["id"], "bir", PDF)).json()["data"]["bir_path"]
        logo_path = (await upload(client, enthusiast_headers, application["id"], "logo", PNG)).json()["data"]["logo_path"]

        archived = (await client.post(f"{API}/{application['id']}/archive", headers=admin_headers)).json()["data"]

        assert archived["bir_path"] is None
        assert archived["logo_path"] is None
        assert not (upload_dir / bir_path).exists()
        assert not (upload_dir / logo_path).exists()
        assert not (upload_dir / "applications" / str(application["id"])).exists()

    @pytest.mark.asyncio
    async def test_archive_keeps_logo_of_approved_stall(self, client, enthusiast_headers, admin_headers,
                                                        application_payload, upload_dir):
        application = await submit(client, enthusiast_headers, application_payload)
        bir_path = (await upload(client, enthusiast_headers, application["id"], "bir", PDF)).json()["data"]["bir_path"]
        logo_path = (await upload(client, enthusiast_headers, application["id"], "logo", PNG)).json()["data"]["logo_path"]
        stall_id = (await client.post(f"{API}/{application['id']}/approve",
                                      headers=admin_headers)).json()["data"]["stall_id"]

        archived = (await client.post(f"{API}/{application['id']}/archive", headers=admin_headers)).json()["data"]

        assert archived["logo_path"] == logo_path
        assert (upload_dir / logo_path).exists()
        assert not (upload_dir / bir_path).exists()
        stall = (await client.get(f"/api/v1/stalls/{stall_id}")).json()["data"]
        assert stall["image"] == logo_path
