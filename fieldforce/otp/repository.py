import uuid
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import select, update
from fieldforce.schema.full_schema import Client, OtpRecord, OtpUsedReason


def _latest_first(stmt):
    # rows are changed through bulk updates, so always refresh what the identity map holds
    return (stmt.order_by(OtpRecord.created_at.desc(), OtpRecord.id.desc()).limit(1)
            .execution_options(populate_existing=True))


async def find_latest_active_by_client(session, client_id: int, lock: bool = False) -> Optional[OtpRecord]:
    stmt = _latest_first(
        select(OtpRecord).where(OtpRecord.client_id == client_id, OtpRecord.is_used.is_(False))
    )
    if lock:
        # ignored on sqlite
        stmt = stmt.with_for_update()
    res = await session.execute(stmt)
    return res.scalar_one_or_none()


async def find_latest_by_client(session, client_public_id: uuid.UUID) -> Optional[OtpRecord]:
    stmt = _latest_first(
        select(OtpRecord).join(Client, Client.id == OtpRecord.client_id)
        .where(Client.public_id == client_public_id)
    )
    res = await session.execute(stmt)
    return res.scalar_one_or_none()


async def supersede_active(session, client_id: int, at: datetime) -> int:
    stmt = (
        update(OtpRecord)
        .where(OtpRecord.client_id == client_id, OtpRecord.is_used.is_(False))
        .values(is_used=True, used_reason=OtpUsedReason.SUPERSEDED, used_at=at)
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return res.rowcount or 0


async def create_otp(session, *, client_id: int, code_hash: str, phone: str,
                     at: datetime, ttl_seconds: int) -> OtpRecord:
    record = OtpRecord(client_id=client_id, code_hash=code_hash, phone=phone,
                       created_at=at, expires_at=at + timedelta(seconds=ttl_seconds),
                       attempts=0, is_used=False)
    session.add(record)
    await session.flush()
    return record


async def save_attempts(session, record_id: int) -> int:
    # relative increment, concurrent wrong guesses on the same row all count
    stmt = (
        update(OtpRecord)
        .where(OtpRecord.id == record_id, OtpRecord.is_used.is_(False))
        .values(attempts=OtpRecord.attempts + 1)
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return res.rowcount or 0


async def mark_used(session, record_id: int, reason: OtpUsedReason, at: datetime,
                    count_attempt: bool = False) -> int:
    """Compare-and-swap consume. Returns the number of rows moved out of the unused state (0 or 1)."""
    values = {"is_used": True, "used_reason": reason, "used_at": at}
    if count_attempt:
        values["attempts"] = OtpRecord.attempts + 1
    stmt = (
        update(OtpRecord)
        .where(OtpRecord.id == record_id, OtpRecord.is_used.is_(False))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return res.rowcount or 0
