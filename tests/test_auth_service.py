import pytest

from rbac_console.errors import AuthError, ConflictError
from rbac_console.models import UserRole
from rbac_console.security.token_inspection import validate_access_token
from rbac_console.services.auth_service import AuthService
from rbac_console.services.role_service import RoleService


@pytest.mark.anyio
async def test_signup_returns_token_for_new_user(session) -> None:
    response = await AuthService(session).signup("User@Example.com", "password123", "alice")

    assert response.user.email == "user@example.com"
    assert response.user.username == "alice"
    context = validate_access_token(response.token)
    assert context.user_id == response.user.id
    assert context.roles == ()


@pytest.mark.anyio
async def test_signup_duplicate_email_conflicts(session) -> None:
    service = AuthService(session)
    await service.signup("user@example.com", "password123")

    with pytest.raises(ConflictError, match="User with this email already exists"):
        await service.signup("USER@example.com", "password456")


@pytest.mark.anyio
async def test_signup_duplicate_username_conflicts(session) -> None:
    service = AuthService(session)
    await service.signup("one@example.com", "password123", "alice")

    with pytest.raises(ConflictError, match="User with this username already exists"):
        await service.signup("two@example.com", "password123", "alice")


@pytest.mark.anyio
async def test_login_embeds_role_names(session) -> None:
    service = AuthService(session)
    signed_up = await service.signup("user@example.com", "password123")
    role = await RoleService(session).create("admin")
    session.add(UserRole(user_id=signed_up.user.id, role_id=role.id))
    await session.commit()

    response = await service.login("user@example.com", "password123")

    assert response.user.roles == ["admin"]
    assert validate_access_token(response.token).roles == ("admin",)


@pytest.mark.anyio
async def test_login_wrong_password_rejected(session) -> None:
    service = AuthService(session)
    await service.signup("user@example.com", "password123")

    with pytest.raises(AuthError, match="Invalid credentials"):
        await service.login("user@example.com", "wrong-password")


@pytest.mark.anyio
async def test_login_unknown_email_rejected(session) -> None:
    with pytest.raises(AuthError, match="Invalid credentials"):
        await AuthService(session).login("nobody@example.com", "password123")
