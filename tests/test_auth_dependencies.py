from datetime import datetime, timezone

import pytest
from fastapi import HTTPException

from apps.api.dependencies.auth import require_staff, resolve_claims_from_token, role_required
from apps.api.services.access import Role
from apps.api.services.users import User


def _user(role: Role) -> User:
    return User(id="x1", name="X", email="x@example.com", role=role, created_at=datetime.now(timezone.utc))


@pytest.mark.asyncio
async def test_role_required_allows_authorized_user():
    dependency = role_required(Role.MANAGER)
    result = await dependency(_user(Role.MANAGER))  # type: ignore[arg-type]
    assert result.id == "x1"


@pytest.mark.asyncio
async def test_role_required_rejects_unauthorized_user():
    with pytest.raises(HTTPException) as exc:
        await require_staff(_user(Role.USER))  # type: ignore[arg-type]

    assert exc.value.status_code == 403
    assert exc.value.detail == "Insufficient permissions"


def test_resolve_claims_rejects_garbage():
    with pytest.raises(HTTPException) as exc:
        resolve_claims_from_token("garbage")

    assert exc.value.status_code == 401
