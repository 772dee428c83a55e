"""Unit tests for the identity store."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from poll_api.core.errors import ConflictError, NotFoundError, ValidationError
from poll_api.models.identity import Identity
from poll_api.services import identity_service


class TestNormalizeEmail:
    def test_lowercases_and_trims(self) -> None:
        assert identity_service.normalize_email("  Anna.Schmidt@School.TEST ") == "anna.schmidt@school.test"


class TestRegister:
    @pytest.mark.asyncio
    async def test_new_identity_is_pending(self, async_session: AsyncSession) -> None:
        identity, created = await identity_service.register(
            async_session, " Clara.Weber@School.test", "hash-1", "111111"
        )
        assert created is True
        assert identity.email == "clara.weber@school.test"
        assert identity.verified is False
        assert identity.status == "pending"
        assert identity.verification_code == "111111"

    @pytest.mark.asyncio
    async def test_pending_reregistration_rotates_code(
        self, async_session: AsyncSession, pending_identity: Identity
    ) -> None:
        original_hash = pending_identity.credential_hash
        identity, created = await identity_service.register(
            async_session, pending_identity.email, "other-hash", "222222"
        )
        assert created is False
        assert identity.id == pending_identity.id
        assert identity.verification_code == "222222"
        assert identity.credential_hash == original_hash
        count = await async_session.scalar(select(func.count(Identity.id)))
        assert count == 1

    @pytest.mark.asyncio
    async def test_verified_email_is_duplicate(
        self, async_session: AsyncSession, verified_identity: Identity
    ) -> None:
        with pytest.raises(ConflictError) as exc_info:
            await identity_service.register(async_session, verified_identity.email.upper(), "h", "333333")
        assert exc_info.value.code == "duplicate_email"


class TestVerify:
    @pytest.mark.asyncio
    async def test_matching_code_verifies_and_consumes(
        self, async_session: AsyncSession, pending_identity: Identity
    ) -> None:
        identity = await identity_service.verify(async_session, pending_identity.email, " 123456 ")
        assert identity.verified is True
        assert identity.status == "verified"
        assert identity.verification_code is None

    @pytest.mark.asyncio
    async def test_unknown_email(self, async_session: AsyncSession) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await identity_service.verify(async_session, "nobody@school.test", "123456")
        assert exc_info.value.code == "identity_not_found"

    @pytest.mark.asyncio
    async def test_already_verified(self, async_session: AsyncSession, verified_identity: Identity) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await identity_service.verify(async_session, verified_identity.email, "123456")
        assert exc_info.value.code == "already_verified"

    @pytest.mark.asyncio
    async def test_wrong_code(self, async_session: AsyncSession, pending_identity: Identity) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await identity_service.verify(async_session, pending_identity.email, "000000")
        assert exc_info.value.code == "code_mismatch"

    @pytest.mark.asyncio
    async def test_code_is_single_use(self, async_session: AsyncSession, pending_identity: Identity) -> None:
        await identity_service.verify(async_session, pending_identity.email, "123456")
        with pytest.raises(ValidationError) as exc_info:
            await identity_service.verify(async_session, pending_identity.email, "123456")
        assert exc_info.value.code == "already_verified"


class TestCredentials:
    @pytest.mark.asyncio
    async def test_update_credential_replaces_hash(
        self, async_session: AsyncSession, pending_identity: Identity
    ) -> None:
        identity = await identity_service.update_credential(async_session, pending_identity.email, "new-hash")
        assert identity.credential_hash == "new-hash"

    @pytest.mark.asyncio
    async def test_update_credential_unknown_email(self, async_session: AsyncSession) -> None:
        with pytest.raises(NotFoundError):
            await identity_service.update_credential(async_session, "nobody@school.test", "h")

    @pytest.mark.asyncio
    async def test_set_verification_code_replaces_pending_code(
        self, async_session: AsyncSession, pending_identity: Identity
    ) -> None:
        await identity_service.set_verification_code(async_session, pending_identity.email, "777777")
        with pytest.raises(ValidationError):
            await identity_service.verify(async_session, pending_identity.email, "123456")
        identity = await identity_service.verify(async_session, pending_identity.email, "777777")
        assert identity.verified is True


class TestLookup:
    @pytest.mark.asyncio
    async def test_find_by_email_is_case_insensitive(
        self, async_session: AsyncSession, verified_identity: Identity
    ) -> None:
        found = await identity_service.find_by_email(async_session, "  ANNA.SCHMIDT@school.test")
        assert found is not None
        assert found.id == verified_identity.id

    @pytest.mark.asyncio
    async def test_find_by_email_absent(self, async_session: AsyncSession) -> None:
        assert await identity_service.find_by_email(async_session, "nobody@school.test") is None

    @pytest.mark.asyncio
    async def test_get_identity(self, async_session: AsyncSession, verified_identity: Identity) -> None:
        assert await identity_service.get_identity(async_session, verified_identity.id) is verified_identity
