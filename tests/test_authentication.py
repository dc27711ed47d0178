import uuid
from datetime import timedelta

import pytest

from src.base.auth.auth_core import TokenService
from src.base.auth.authentication import authenticate, extract_bearer_token
from src.base.core.exceptions import UnauthorizedError
from src.base.models.identity import Identity
from src.base.models.role import Role
from tests.conftest import TEST_SECRET, auth_header

IDENTITY = Identity(id=uuid.uuid4(), email="ana@example.com", role=Role.USER)


class TestExtractBearerToken:
    def test_extracts_token(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize(
        "header", [None, "", "abc.def.ghi", "Basic dXNlcjpwYXNz", "bearer abc", "Bearer ", "Bearer    "]
    )
    def test_missing_or_malformed(self, header):
        with pytest.raises(UnauthorizedError) as exc_info:
            extract_bearer_token(header)
        assert exc_info.value.reason == UnauthorizedError.TOKEN_MISSING


class TestAuthenticate:
    def test_valid_token(self, token_service):
        token = token_service.issue(IDENTITY)
        assert authenticate(f"Bearer {token}", token_service) == IDENTITY

    def test_expired_and_forged_are_indistinguishable(self, token_service):
        expired = TokenService(TEST_SECRET, expires_in=timedelta(seconds=-10)).issue(IDENTITY)
        forged = TokenService("not-the-secret").issue(IDENTITY)

        errors = []
        for token in (expired, forged, "garbage"):
            with pytest.raises(UnauthorizedError) as exc_info:
                authenticate(f"Bearer {token}", token_service)
            errors.append(exc_info.value)

        assert {e.message for e in errors} == {"Invalid or expired token"}
        assert {e.reason for e in errors} == {UnauthorizedError.TOKEN_INVALID_OR_EXPIRED}


class TestAuthenticationGate:
    async def test_missing_header(self, client):
        resp = await client.get(f"/users/{uuid.uuid4()}")
        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized", "message": "Token not provided"}

    async def test_wrong_scheme(self, client, token_service):
        token = token_service.issue(IDENTITY)
        resp = await client.get(f"/users/{uuid.uuid4()}", headers={"Authorization": token})
        assert resp.status_code == 401

    async def test_expired_and_forged_same_response(self, client):
        expired = TokenService(TEST_SECRET, expires_in=timedelta(seconds=-10)).issue(IDENTITY)
        forged = TokenService("not-the-secret").issue(IDENTITY)

        resp_expired = await client.get(f"/users/{IDENTITY.id}", headers=auth_header(expired))
        resp_forged = await client.get(f"/users/{IDENTITY.id}", headers=auth_header(forged))

        assert resp_expired.status_code == resp_forged.status_code == 401
        assert resp_expired.json() == resp_forged.json()
        assert resp_expired.json()["error"] == "Unauthorized"

    async def test_valid_token_passes(self, client, user_headers, regular_user):
        resp = await client.get(f"/users/{regular_user.id}", headers=user_headers)
        assert resp.status_code == 200
