"""
Tests for registration, login and user management.
"""
import pytest

from supportdesk.exceptions import Forbidden, InvalidRequest, NotFound, Unauthorized
from supportdesk.models import UserRole


async def test_register_customer_returns_token(user_service, auth_service):
    user, token = await user_service.register("Dana", "Dana@Example.com", "secret1")

    assert user.email == "dana@example.com"
    assert user.role == "customer"
    assert user.last_login is not None
    assert auth_service.verify_token(token)["sub"] == user.id


async def test_register_handler_role_requires_admin(user_service, customer_user):
    with pytest.raises(Forbidden):
        await user_service.register("Eve", "eve@example.com", "secret1", role=UserRole.ADMIN)

    with pytest.raises(Forbidden):
        await user_service.register(
            "Eve", "eve@example.com", "secret1",
            role=UserRole.SUPPORT_AGENT,
            actor=customer_user,
        )


async def test_admin_can_register_support_agent(user_service, admin_user):
    user, _ = await user_service.register(
        "Finn", "finn@example.com", "secret1",
        role=UserRole.SUPPORT_AGENT,
        actor=admin_user,
    )

    assert user.role == "support_agent"
    assert user.is_handler


async def test_duplicate_email_is_rejected(user_service, customer_user):
    with pytest.raises(InvalidRequest):
        await user_service.create_user("Other", "CARL@example.com", "secret1")


@pytest.mark.parametrize("name,email,password", [
    ("", "a@example.com", "secret1"),
    ("Name", "", "secret1"),
    ("Name", "a@example.com", "short"),
    ("Name", "not-an-email", "secret1"),
])
async def test_create_user_validation(user_service, name, email, password):
    with pytest.raises(InvalidRequest):
        await user_service.create_user(name, email, password)


async def test_login_success(user_service, customer_user):
    user, token = await user_service.login("carl@example.com", "custpass")

    assert user.id == customer_user.id
    assert user.last_login is not None
    assert token


@pytest.mark.parametrize("email,password", [
    ("carl@example.com", "wrongpass"),
    ("nobody@example.com", "custpass"),
    ("", ""),
])
async def test_login_rejects_bad_credentials(user_service, customer_user, email, password):
    with pytest.raises(Unauthorized):
        await user_service.login(email, password)


async def test_login_rejects_deactivated_account(user_service, customer_user):
    await user_service.update_user(customer_user.id, is_active=False)

    with pytest.raises(Unauthorized) as exc_info:
        await user_service.login("carl@example.com", "custpass")

    assert "deactivated" in exc_info.value.message


async def test_update_profile(user_service, customer_user):
    updated = await user_service.update_profile(customer_user, name="Carl C.", password="newpass1")

    assert updated.name == "Carl C."
    user, _ = await user_service.login("carl@example.com", "newpass1")
    assert user.id == customer_user.id


async def test_update_profile_rejects_blank_name(user_service, customer_user):
    with pytest.raises(InvalidRequest):
        await user_service.update_profile(customer_user, name="  ")


async def test_update_user_role(user_service, customer_user):
    updated = await user_service.update_user(customer_user.id, role=UserRole.SUPPORT_AGENT)

    assert updated.role == "support_agent"


async def test_update_missing_user(user_service):
    with pytest.raises(NotFound):
        await user_service.update_user("missing", name="X")


async def test_ensure_admin_is_idempotent(user_service):
    first = await user_service.ensure_admin("root@example.com", "rootpass", "Root")
    second = await user_service.ensure_admin("root@example.com", "otherpass", "Root")

    assert first.id == second.id
    assert first.role == "admin"
    assert len(await user_service.list_users()) == 1
