"""
Unit Tests for AuthService
Tests for: registration and key minting, login, refresh rotation, password reset
"""
import re
import pytest
from datetime import datetime, timedelta
from faker import Faker
from sqlalchemy import select

from storyai.core.result import ErrorCode
from storyai.core.security import decode_token
from storyai.models.user import User, UserRole
from storyai.services.auth_service import AuthService

fake = Faker()


def fake_registration() -> dict:
    return {
        "full_name": fake.name(),
        "email": fake.unique.email(),
        "password": "securePassword123!",
    }


async def _user_row(db_session, email: str) -> User:
    result = await db_session.execute(
        select(User).where(User.email == email).execution_options(populate_existing=True)
    )
    return result.scalar_one()


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_mints_encryption_key(self, db_session):
        data = fake_registration()

        result = await AuthService(db_session).register(**data)

        assert result.success is True
        assert result.status_code == 201
        assert result.data.role == UserRole.AUTHOR
        row = await _user_row(db_session, data["email"].lower())
        assert re.fullmatch(r"[0-9a-f]{32}", row.data_encryption_key)
        assert row.hashed_password != data["password"]

    @pytest.mark.asyncio
    async def test_profile_never_exposes_key(self, db_session):
        result = await AuthService(db_session).register(**fake_registration())

        dumped = result.data.model_dump()
        assert "data_encryption_key" not in dumped
        assert "hashed_password" not in dumped

    @pytest.mark.asyncio
    async def test_each_author_gets_own_key(self, db_session):
        service = AuthService(db_session)
        first, second = fake_registration(), fake_registration()
        await service.register(**first)
        await service.register(**second)

        a = await _user_row(db_session, first["email"].lower())
        b = await _user_row(db_session, second["email"].lower())
        assert a.data_encryption_key != b.data_encryption_key

    @pytest.mark.asyncio
    async def test_duplicate_email(self, db_session):
        data = fake_registration()
        service = AuthService(db_session)
        await service.register(**data)

        result = await service.register(**{**data, "email": data["email"].upper()})

        assert result.error_code == ErrorCode.CONFLICT
        assert "already registered" in result.message

    @pytest.mark.asyncio
    @pytest.mark.parametrize("override", [
        {"full_name": "A"},
        {"email": "not-an-email"},
        {"email": "two@@example.com"},
        {"password": "12345"},
    ])
    async def test_invalid_input(self, db_session, override):
        result = await AuthService(db_session).register(**{**fake_registration(), **override})
        assert result.error_code == ErrorCode.VALIDATION_ERROR


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_issues_tokens(self, db_session):
        data = fake_registration()
        service = AuthService(db_session)
        registered = await service.register(**data)

        result = await service.login(data["email"], data["password"])

        assert result.success is True
        assert result.data.token_type == "bearer"
        payload = decode_token(result.data.access_token)
        assert payload["sub"] == registered.data.id
        assert payload["role"] == "author"
        row = await _user_row(db_session, data["email"].lower())
        assert row.last_login is not None

    @pytest.mark.asyncio
    async def test_wrong_password(self, db_session):
        data = fake_registration()
        service = AuthService(db_session)
        await service.register(**data)

        result = await service.login(data["email"], "wrong-password")

        assert result.error_code == ErrorCode.AUTH_FAILED
        assert result.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_email(self, db_session):
        result = await AuthService(db_session).login("nobody@example.com", "whatever")
        assert result.error_code == ErrorCode.AUTH_FAILED

    @pytest.mark.asyncio
    async def test_inactive_account(self, db_session):
        data = fake_registration()
        service = AuthService(db_session)
        await service.register(**data)
        row = await _user_row(db_session, data["email"].lower())
        row.is_active = False
        await db_session.commit()

        result = await service.login(data["email"], data["password"])

        assert result.error_code == ErrorCode.FORBIDDEN


class TestRefresh:

    @pytest.mark.asyncio
    async def test_refresh_rotates_token(self, db_session):
        data = fake_registration()
        service = AuthService(db_session)
        await service.register(**data)
        login = await service.login(data["email"], data["password"])

        refreshed = await service.refresh(login.data.refresh_token)
        replay = await service.refresh(login.data.refresh_token)

        assert refreshed.success is True
        assert refreshed.data.refresh_token != login.data.refresh_token
        assert replay.error_code == ErrorCode.AUTH_FAILED

    @pytest.mark.asyncio
    async def test_expired_refresh_token(self, db_session):
        data = fake_registration()
        service = AuthService(db_session)
        await service.register(**data)
        login = await service.login(data["email"], data["password"])
        row = await _user_row(db_session, data["email"].lower())
        row.refresh_token_expires = datetime.utcnow() - timedelta(minutes=1)
        await db_session.commit()

        result = await service.refresh(login.data.refresh_token)

        assert result.error_code == ErrorCode.AUTH_FAILED

    @pytest.mark.asyncio
    async def test_unknown_refresh_token(self, db_session):
        result = await AuthService(db_session).refresh("made-up-token")
        assert result.error_code == ErrorCode.AUTH_FAILED


class TestPasswordReset:

    @pytest.mark.asyncio
    async def test_forgot_and_reset(self, db_session):
        data = fake_registration()
        service = AuthService(db_session)
        await service.register(**data)

        forgot = await service.forgot_password(data["email"])
        reset = await service.reset_password(forgot.data, "brand-new-secret")

        assert forgot.success is True
        assert reset.success is True
        assert (await service.login(data["email"], data["password"])).error_code == ErrorCode.AUTH_FAILED
        assert (await service.login(data["email"], "brand-new-secret")).success is True

    @pytest.mark.asyncio
    async def test_reset_token_is_single_use(self, db_session):
        data = fake_registration()
        service = AuthService(db_session)
        await service.register(**data)
        forgot = await service.forgot_password(data["email"])
        await service.reset_password(forgot.data, "brand-new-secret")

        again = await service.reset_password(forgot.data, "another-secret")

        assert again.error_code == ErrorCode.VALIDATION_ERROR

    @pytest.mark.asyncio
    async def test_forgot_unknown_email_looks_the_same(self, db_session):
        data = fake_registration()
        service = AuthService(db_session)
        await service.register(**data)

        known = await service.forgot_password(data["email"])
        unknown = await service.forgot_password("nobody@example.com")

        assert unknown.success is True
        assert unknown.data is None
        assert unknown.message == known.message

    @pytest.mark.asyncio
    async def test_reset_rejects_short_password(self, db_session):
        data = fake_registration()
        service = AuthService(db_session)
        await service.register(**data)
        forgot = await service.forgot_password(data["email"])

        result = await service.reset_password(forgot.data, "123")

        assert result.error_code == ErrorCode.VALIDATION_ERROR


class TestProfile:

    @pytest.mark.asyncio
    async def test_get_profile(self, db_session, author):
        result = await AuthService(db_session).get_profile(author.id)

        assert result.data.email == author.email
        assert "data_encryption_key" not in result.data.model_dump()

    @pytest.mark.asyncio
    async def test_get_profile_missing(self, db_session):
        result = await AuthService(db_session).get_profile("00000000-0000-0000-0000-000000000000")
        assert result.error_code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_update_profile(self, db_session, author):
        result = await AuthService(db_session).update_profile(
            author.id, "  Jane Writer  ", avatar_url="https://cdn.example.com/jane.png"
        )

        assert result.success is True
        assert result.data.full_name == "Jane Writer"
        assert result.data.avatar_url == "https://cdn.example.com/jane.png"
        row = await _user_row(db_session, author.email)
        assert row.full_name == "Jane Writer"

    @pytest.mark.asyncio
    async def test_update_profile_clears_avatar(self, db_session, author):
        service = AuthService(db_session)
        await service.update_profile(author.id, "Jane Writer", avatar_url="https://cdn.example.com/a.png")

        result = await service.update_profile(author.id, "Jane Writer", avatar_url="   ")

        assert result.data.avatar_url is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("full_name", ["", " J ", "x" * 101])
    async def test_update_profile_rejects_name(self, db_session, author, full_name):
        original = author.full_name

        result = await AuthService(db_session).update_profile(author.id, full_name)

        assert result.error_code == ErrorCode.VALIDATION_ERROR
        row = await _user_row(db_session, author.email)
        assert row.full_name == original

    @pytest.mark.asyncio
    async def test_update_profile_missing_user(self, db_session):
        result = await AuthService(db_session).update_profile(
            "00000000-0000-0000-0000-000000000000", "Jane Writer"
        )
        assert result.error_code == ErrorCode.NOT_FOUND


class TestRegisterRace:

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_email_is_conflict(self, db_session, monkeypatch):
        data = fake_registration()
        service = AuthService(db_session)
        await service.register(**data)

        async def _not_taken(email):
            return False

        # The other registration commits between the check and the insert
        monkeypatch.setattr(service.users, "email_exists", _not_taken)
        result = await service.register(**data)

        assert result.success is False
        assert result.error_code == ErrorCode.CONFLICT
