import uuid

import pytest
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient

from src.base.auth.rbac import (
    ensure_role,
    ensure_self_or_role,
    require_role,
    require_self_or_role,
)
from src.base.core.error_handlers import register_exception_handlers
from src.base.core.exceptions import ForbiddenError
from src.base.models.identity import Identity
from src.base.models.role import Role
from src.domain.auth.authorization import ensure_can_change_role
from src.domain.models.user_schemas import UserUpdate
from tests.conftest import auth_header

ADMIN = Identity(id=uuid.uuid4(), email="admin@example.com", role=Role.ADMIN)
REGULAR_USER = Identity(id=uuid.uuid4(), email="user@example.com", role=Role.USER)
OTHER_USER = Identity(id=uuid.uuid4(), email="other@example.com", role=Role.USER)


# ── predicates ──────────────────────────────────────────────────────


class TestEnsureRole:
    def test_matching_role_allowed(self):
        assert ensure_role(ADMIN, Role.ADMIN) is ADMIN

    def test_other_role_forbidden(self):
        with pytest.raises(ForbiddenError):
            ensure_role(REGULAR_USER, Role.ADMIN)

    def test_no_identity_forbidden(self):
        with pytest.raises(ForbiddenError):
            ensure_role(None, Role.ADMIN)


class TestEnsureSelfOrRole:
    def test_role_bypasses_ownership(self):
        assert ensure_self_or_role(ADMIN, Role.ADMIN, REGULAR_USER.id) is ADMIN

    def test_owner_allowed(self):
        assert ensure_self_or_role(REGULAR_USER, Role.ADMIN, REGULAR_USER.id) is REGULAR_USER

    def test_non_owner_forbidden(self):
        with pytest.raises(ForbiddenError):
            ensure_self_or_role(REGULAR_USER, Role.ADMIN, OTHER_USER.id)

    def test_no_target_only_role(self):
        assert ensure_self_or_role(ADMIN, Role.ADMIN, None) is ADMIN
        with pytest.raises(ForbiddenError):
            ensure_self_or_role(REGULAR_USER, Role.ADMIN, None)

    def test_no_identity_forbidden(self):
        with pytest.raises(ForbiddenError):
            ensure_self_or_role(None, Role.ADMIN, REGULAR_USER.id)


class TestEnsureCanChangeRole:
    def test_admin_may_change_role(self):
        ensure_can_change_role(ADMIN, UserUpdate(role=Role.ADMIN))

    def test_user_may_update_without_role(self):
        ensure_can_change_role(REGULAR_USER, UserUpdate(name="New name"))

    def test_user_may_not_change_role(self):
        with pytest.raises(ForbiddenError):
            ensure_can_change_role(REGULAR_USER, UserUpdate(role=Role.USER))


# ── dependencies ────────────────────────────────────────────────────


@pytest.fixture
def guarded_app(token_service):
    test_app = FastAPI()
    test_app.state.token_service = token_service
    register_exception_handlers(test_app)

    @test_app.get("/admin-only")
    async def admin_route(identity: Identity = Depends(require_role(Role.ADMIN))):
        return {"user_id": str(identity.id)}

    @test_app.get("/records/{user_id}")
    async def owner_route(
        user_id: str, identity: Identity = Depends(require_self_or_role(Role.ADMIN))
    ):
        return {"user_id": str(identity.id), "target": user_id}

    return test_app


@pytest.fixture
async def guarded_client(guarded_app):
    async with AsyncClient(
        transport=ASGITransport(app=guarded_app), base_url="http://test"
    ) as c:
        yield c


@pytest.fixture
def headers_for(token_service):
    def _headers(identity: Identity) -> dict[str, str]:
        return auth_header(token_service.issue(identity))

    return _headers


class TestRequireRole:
    async def test_admin_allowed(self, guarded_client, headers_for):
        resp = await guarded_client.get("/admin-only", headers=headers_for(ADMIN))
        assert resp.status_code == 200
        assert resp.json()["user_id"] == str(ADMIN.id)

    async def test_user_forbidden(self, guarded_client, headers_for):
        resp = await guarded_client.get("/admin-only", headers=headers_for(REGULAR_USER))
        assert resp.status_code == 403
        assert resp.json()["error"] == "Forbidden"

    async def test_unauthenticated_unauthorized(self, guarded_client):
        resp = await guarded_client.get("/admin-only")
        assert resp.status_code == 401
        assert resp.json()["error"] == "Unauthorized"


class TestRequireSelfOrRole:
    async def test_owner_allowed(self, guarded_client, headers_for):
        resp = await guarded_client.get(
            f"/records/{REGULAR_USER.id}", headers=headers_for(REGULAR_USER)
        )
        assert resp.status_code == 200

    async def test_owner_match_ignores_uuid_case(self, guarded_client, headers_for):
        resp = await guarded_client.get(
            f"/records/{str(REGULAR_USER.id).upper()}", headers=headers_for(REGULAR_USER)
        )
        assert resp.status_code == 200

    async def test_other_user_forbidden(self, guarded_client, headers_for):
        resp = await guarded_client.get(
            f"/records/{OTHER_USER.id}", headers=headers_for(REGULAR_USER)
        )
        assert resp.status_code == 403

    async def test_admin_allowed_on_any_record(self, guarded_client, headers_for):
        resp = await guarded_client.get(f"/records/{OTHER_USER.id}", headers=headers_for(ADMIN))
        assert resp.status_code == 200

    async def test_unparsable_target_never_matches(self, guarded_client, headers_for):
        resp = await guarded_client.get("/records/not-a-uuid", headers=headers_for(REGULAR_USER))
        assert resp.status_code == 403

    async def test_unauthenticated_unauthorized(self, guarded_client):
        resp = await guarded_client.get(f"/records/{REGULAR_USER.id}")
        assert resp.status_code == 401
