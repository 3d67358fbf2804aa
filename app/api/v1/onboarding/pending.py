"""
Single-use handoff of onboarding answers for users who have not registered yet.

Issuing a token expires every other active token for the same email, so at
most one token per email is redeemable at any time. Redemption marks the
token consumed with a conditional update guarded by ``consumed_at IS NULL``.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional
from pydantic import ValidationError
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.v1.onboarding.steps import ALT_ONBOARDING_VERSION
from app.core.config import settings
from app.core.errors import (
    AddressPreferenceRequiredException,
    PendingAccountMismatchException,
    PendingIssueConflictException,
    PendingPayloadInvalidException,
    PendingTokenExpiredException,
    PendingTokenInvalidException,
)
from app.db.transaction import atomic
from app.models.pending_onboarding import PendingOnboarding
from app.models.user import User
from app.schemas.onboarding import (
    DirectFinalizeRequest,
    FinalizeRequest,
    FinalizeResponseData,
    PendingFinalizeRequest,
    PendingOnboardingRequest,
)

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def _expire_active_records(session: AsyncSession, email: str, now: datetime) -> None:
    await session.execute(
        update(PendingOnboarding)
        .where(PendingOnboarding.email == email, PendingOnboarding.consumed_at.is_(None))
        .values(consumed_at=now)
    )


async def _replace_active_record(
    session: AsyncSession, email: str, stored: dict, now: datetime
) -> PendingOnboarding:
    async with atomic(session):
        await _expire_active_records(session, email, now)
        record = PendingOnboarding(
            token=str(uuid.uuid4()),
            email=email,
            payload=stored,
            expires_at=now + timedelta(days=settings.PENDING_TTL_DAYS),
        )
        session.add(record)
    return record


async def issue_pending_onboarding(
    session: AsyncSession, payload: PendingOnboardingRequest, now: Optional[datetime] = None
) -> PendingOnboarding:
    now = now or datetime.now(timezone.utc)
    email = normalize_email(payload.registration.email)

    stored = payload.model_dump(by_alias=True, mode="json")
    stored["registration"]["email"] = email

    try:
        record = await _replace_active_record(session, email, stored, now)
    except IntegrityError:
        # A concurrent issue for this email inserted its token after our expire ran.
        logger.warning(f"Concurrent pending onboarding issue for {email}, retrying once")
        try:
            record = await _replace_active_record(session, email, stored, now)
        except IntegrityError:
            raise PendingIssueConflictException()

    logger.info(f"Issued pending onboarding token for {email}, expires {record.expires_at.isoformat()}")
    return record


async def resolve_pending_payload(
    session: AsyncSession, request: PendingFinalizeRequest, user: User, now: datetime
) -> DirectFinalizeRequest:
    """Turn a pending token into a full finalize payload or raise the matching error."""
    record = await session.get(PendingOnboarding, request.pending_token, populate_existing=True)
    if record is None or record.consumed_at is not None:
        raise PendingTokenInvalidException()

    if _as_utc(record.expires_at) <= now:
        raise PendingTokenExpiredException()

    try:
        stored = PendingOnboardingRequest.model_validate(record.payload)
    except ValidationError:
        logger.warning(f"Stored payload for pending token {record.token} failed validation")
        raise PendingPayloadInvalidException()

    user_email = normalize_email(user.email) if user.email else None
    pending_email = normalize_email(record.email) if record.email else None
    if user_email and pending_email and user_email != pending_email:
        raise PendingAccountMismatchException()

    address_preference = request.address_preference or stored.address_preference
    if not address_preference:
        raise AddressPreferenceRequiredException()

    return DirectFinalizeRequest(
        registration=stored.registration,
        entry=stored.entry,
        path=stored.path,
        responses=stored.responses,
        neutral_block_visited=stored.neutral_block_visited,
        address_preference=address_preference,
    )


def build_full_name(first_name_or_nickname: str, last_name: str) -> str:
    first = first_name_or_nickname.strip()
    last = (last_name or "").strip()
    if not last:
        return first
    return f"{first} {last}"


def build_private_payload(payload: DirectFinalizeRequest, completed_at: datetime) -> dict:
    # Stored only in users.alt_onboarding_private, never part of a response.
    dumped = payload.model_dump(by_alias=True, mode="json")
    return {
        "version": ALT_ONBOARDING_VERSION,
        "entry": dumped["entry"],
        "path": dumped["path"],
        "steps": dumped["responses"],
        "neutralBlockVisited": dumped["neutralBlockVisited"],
        "registration": dumped["registration"],
        "addressPreference": dumped["addressPreference"],
        "completedAt": completed_at.isoformat(),
    }


async def consume_pending_token(
    session: AsyncSession, token: str, user_id: uuid.UUID, now: datetime
) -> bool:
    """Conditionally mark a token consumed. False when the race was lost or the write failed."""
    try:
        result = await session.execute(
            update(PendingOnboarding)
            .where(PendingOnboarding.token == token, PendingOnboarding.consumed_at.is_(None))
            .values(consumed_at=now, consumed_by=user_id)
            .execution_options(synchronize_session=False)
        )
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Failed to consume pending token {token}: {str(e)}")
        return False

    if result.rowcount == 0:
        logger.warning(f"Pending token {token} was already consumed by a concurrent redemption")
        return False
    return True


async def finalize_onboarding(
    session: AsyncSession, user: User, request: FinalizeRequest, now: Optional[datetime] = None
) -> FinalizeResponseData:
    now = now or datetime.now(timezone.utc)
    user_id = user.id
    pending_token: Optional[str] = None

    if isinstance(request, PendingFinalizeRequest):
        pending_token = request.pending_token
        payload = await resolve_pending_payload(session, request, user, now)
    else:
        payload = request

    user.full_name = build_full_name(
        payload.registration.first_name_or_nickname, payload.registration.last_name)
    user.form_of_address = payload.address_preference
    user.onboarding_complete = True
    user.onboarding_completed_at = now
    user.alt_onboarding_private = build_private_payload(payload, now)
    await session.commit()
    logger.info(f"Onboarding finalized for user {user_id}")

    # The user write stands even if this fails.
    if pending_token:
        await consume_pending_token(session, pending_token, user_id, now)

    return FinalizeResponseData(user_id=user_id, completed_at=now)
