"""
Checklist tests - progress calculation, user checklist and template management
"""
import pytest
from sqlalchemy import select

from app.models import UserProgress
from app.schemas.checklist import ChecklistItemResponse
from app.services.auth_service import USER_SCOPE
from app.services.checklist_service import calculate_progress
from tests.conftest import bearer_headers


class TestCalculateProgress:

    def test_empty_checklist_is_zero(self):
        assert calculate_progress([]) == 0

    @pytest.mark.parametrize("done,total,expected", [
        (0, 4, 0),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),
        (5, 8, 63),
        (1, 40, 3),
        (4, 4, 100),
    ])
    def test_rounds_to_nearest_percent(self, done, total, expected):
        items = [{"done": i < done} for i in range(total)]
        assert calculate_progress(items) == expected

    def test_accepts_response_objects(self):
        items = [
            ChecklistItemResponse(id=1, text="a", category="c", done=True),
            ChecklistItemResponse(id=2, text="b", category="c", done=False),
        ]
        assert calculate_progress(items) == 50


@pytest.mark.checklist
class TestUserChecklist:

    @pytest.mark.asyncio
    async def test_checklist_requires_auth(self, client):
        response = await client.get("/api/v1/checklist")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_untouched_checklist_is_all_open(self, client, auth_headers, templates):
        response = await client.get("/api/v1/checklist", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert len(data["items"]) == len(templates)
        assert all(item["done"] is False for item in data["items"])
        assert data["percentage"] == 0

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, client, auth_headers, templates, test_user, db_session):
        first = await client.post("/api/v1/checklist/initialize", headers=auth_headers)
        second = await client.post("/api/v1/checklist/initialize", headers=auth_headers)

        assert first.status_code == 201
        assert second.status_code == 201
        result = await db_session.execute(
            select(UserProgress).where(UserProgress.user_id == test_user.id)
        )
        assert len(result.scalars().all()) == len(templates)

    @pytest.mark.asyncio
    async def test_toggle_flips_item(self, client, auth_headers, templates):
        template_id = templates[0].id

        on = await client.patch(f"/api/v1/checklist/{template_id}", headers=auth_headers)
        assert on.status_code == 200
        assert on.json()["done"] is True

        off = await client.patch(f"/api/v1/checklist/{template_id}", headers=auth_headers)
        assert off.json()["done"] is False

    @pytest.mark.asyncio
    async def test_progress_reflects_toggles(self, client, auth_headers, templates):
        await client.post("/api/v1/checklist/initialize", headers=auth_headers)
        await client.patch(f"/api/v1/checklist/{templates[0].id}", headers=auth_headers)

        response = await client.get("/api/v1/checklist/progress", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"total": 4, "completed": 1, "percentage": 25}

    @pytest.mark.asyncio
    async def test_toggle_unknown_item(self, client, auth_headers, templates):
        response = await client.patch("/api/v1/checklist/9999", headers=auth_headers)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_progress_is_per_user(self, client, auth_headers, templates, visitor_user):
        await client.patch(f"/api/v1/checklist/{templates[0].id}", headers=auth_headers)

        response = await client.get(
            "/api/v1/checklist/progress", headers=bearer_headers(visitor_user.id, USER_SCOPE)
        )
        assert response.json()["completed"] == 0


@pytest.mark.checklist
@pytest.mark.admin
class TestTemplateAdmin:

    @pytest.mark.asyncio
    async def test_admin_creates_template(self, client, admin_headers):
        response = await client.post(
            "/api/v1/checklist/admin/templates",
            headers=admin_headers,
            json={"text": "Register a trademark", "category": "Legal"}
        )

        assert response.status_code == 201
        assert response.json()["category"] == "Legal"

    @pytest.mark.asyncio
    async def test_user_token_cannot_manage_templates(self, client, auth_headers):
        response = await client.post(
            "/api/v1/checklist/admin/templates",
            headers=auth_headers,
            json={"text": "Sneaky", "category": "Nope"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_update_template(self, client, admin_headers, templates):
        response = await client.put(
            f"/api/v1/checklist/admin/templates/{templates[1].id}",
            headers=admin_headers,
            json={"text": "Upload your latest pitch deck", "category": "Pitch Materials"}
        )

        assert response.status_code == 200
        assert response.json()["text"] == "Upload your latest pitch deck"

    @pytest.mark.asyncio
    async def test_delete_template_removes_progress(
        self, client, admin_headers, auth_headers, templates, db_session
    ):
        await client.patch(f"/api/v1/checklist/{templates[2].id}", headers=auth_headers)

        response = await client.delete(
            f"/api/v1/checklist/admin/templates/{templates[2].id}", headers=admin_headers
        )

        assert response.status_code == 204
        result = await db_session.execute(
            select(UserProgress).where(UserProgress.template_id == templates[2].id)
        )
        assert result.scalars().all() == []

    @pytest.mark.asyncio
    async def test_list_templates(self, client, admin_headers, templates):
        response = await client.get("/api/v1/checklist/admin/templates", headers=admin_headers)

        assert response.status_code == 200
        assert len(response.json()) == len(templates)
