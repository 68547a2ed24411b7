"""
Tests for Concurrent Workflow Requests

Two identical requests racing each other must not both win: one approval,
one pending application or closure request, one report and one deletion.
These tests run against a file-backed database where every session has its
own connection, so concurrent requests really contend for the write lock.
"""

import asyncio

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from buzzarfeed.core.constants import AdminAction, ApplicationStatus, ClosureStatus
from buzzarfeed.db.database import Base
from buzzarfeed.models import (
    AccountClosureRequest,
    AdminLog,
    Application,
    FoodStall,
    ReviewModeration,
    ReviewReport,
)
from conftest import post_review


@pytest_asyncio.fixture
async def test_db(tmp_path):
    """File-backed SQLite database, one connection per session."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'buzzarfeed.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


async def twice(request):
    """Fire the same request twice at once; return the status codes sorted."""
    responses = await asyncio.gather(request(), request())
    return sorted(response.status_code for response in responses)


async def count(db_session, column, *criteria) -> int:
    return (await db_session.execute(select(func.count(column)).where(*criteria))).scalar_one()


class TestConcurrentDecisions:
    """Test suite for admins deciding the same request at the same time"""

    @pytest.mark.asyncio
    async def test_application_approved_once(self, client, enthusiast_headers, admin_headers,
                                             application_payload, db_session, mailer):
        application = (await client.post("/api/v1/applications", json=application_payload,
                                         headers=enthusiast_headers)).json()["data"]

        statuses = await twice(
            lambda: client.post(f"/api/v1/applications/{application['id']}/approve", headers=admin_headers)
        )

        assert statuses == [200, 400]
        assert await count(db_session, FoodStall.id) == 1
        assert await count(db_session, AdminLog.id, AdminLog.action == AdminAction.APPROVE) == 1
        assert mailer.templates().count("application_approved") == 1

    @pytest.mark.asyncio
    async def test_application_approve_races_reject(self, client, enthusiast_headers, admin_headers,
                                                    application_payload, db_session):
        application = (await client.post("/api/v1/applications", json=application_payload,
                                         headers=enthusiast_headers)).json()["data"]
        url = f"/api/v1/applications/{application['id']}"

        responses = await asyncio.gather(
            client.post(f"{url}/approve", headers=admin_headers),
            client.post(f"{url}/reject", json={"reason": "Incomplete"}, headers=admin_headers),
        )

        assert sorted(response.status_code for response in responses) == [200, 400]
        stored = (await db_session.execute(select(Application))).scalars().one()
        stall_count = await count(db_session, FoodStall.id)
        if stored.status == ApplicationStatus.APPROVED:
            assert stall_count == 1
        else:
            assert stored.status == ApplicationStatus.REJECTED
            assert stall_count == 0

    @pytest.mark.asyncio
    async def test_amendment_approved_once(self, client, stall, owner_headers, admin_headers, db_session):
        amendment = (await client.post(
            "/api/v1/amendments",
            json={"stall_id": stall["id"], "field_name": "name", "new_value": "Kuya's Isaw Express"},
            headers=owner_headers
        )).json()["data"]

        statuses = await twice(
            lambda: client.post(f"/api/v1/amendments/{amendment['id']}/approve", headers=admin_headers)
        )

        assert statuses == [200, 400]
        assert await count(db_session, AdminLog.id, AdminLog.action == AdminAction.APPROVE_AMENDMENT) == 1

    @pytest.mark.asyncio
    async def test_closure_approved_once(self, client, enthusiast_headers, admin_headers, db_session, mailer):
        closure = (await client.post("/api/v1/closures", headers=enthusiast_headers)).json()["data"]

        statuses = await twice(
            lambda: client.post(f"/api/v1/closures/{closure['id']}/approve", headers=admin_headers)
        )

        assert statuses == [200, 400]
        assert await count(db_session, AccountClosureRequest.id,
                           AccountClosureRequest.status == ClosureStatus.APPROVED) == 1
        assert mailer.templates().count("closure_approved") == 1

    @pytest.mark.asyncio
    async def test_reported_review_deleted_once(self, client, stall, enthusiast, enthusiast_headers,
                                                other_headers, admin_headers, db_session, mailer):
        review = await post_review(client, enthusiast_headers, stall["id"], 1, "Worst isaw ever")
        await client.post("/api/v1/reviews/report", json={"review_id": review["id"], "reason": "Spam"},
                          headers=other_headers)

        statuses = await twice(lambda: client.request(
            "DELETE", f"/api/v1/admin/reports/{review['id']}", json={"reason": "Spam"}, headers=admin_headers
        ))

        assert statuses == [200, 404]
        assert await count(db_session, ReviewModeration.id) == 1
        assert [m["template"] for m in mailer.to(enthusiast.email)] == ["review_removed"]


class TestConcurrentSubmissions:
    """Test suite for a user submitting the same request twice at once"""

    @pytest.mark.asyncio
    async def test_one_pending_application(self, client, enthusiast_headers, application_payload, db_session):
        statuses = await twice(
            lambda: client.post("/api/v1/applications", json=application_payload, headers=enthusiast_headers)
        )

        assert statuses == [201, 400]
        assert await count(db_session, Application.id, Application.status == ApplicationStatus.PENDING) == 1

    @pytest.mark.asyncio
    async def test_one_pending_closure(self, client, enthusiast_headers, db_session):
        statuses = await twice(lambda: client.post("/api/v1/closures", headers=enthusiast_headers))

        assert statuses == [201, 400]
        assert await count(db_session, AccountClosureRequest.id) == 1

    @pytest.mark.asyncio
    async def test_one_report_per_reporter(self, client, stall, enthusiast_headers, other_headers, db_session):
        review = await post_review(client, enthusiast_headers, stall["id"], 2)

        statuses = await twice(lambda: client.post(
            "/api/v1/reviews/report", json={"review_id": review["id"], "reason": "Spam"}, headers=other_headers
        ))

        assert statuses == [201, 400]
        assert await count(db_session, ReviewReport.id) == 1
