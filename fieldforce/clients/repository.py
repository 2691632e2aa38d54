import uuid
from typing import Optional
from sqlalchemy import select
from fieldforce.schema.full_schema import Client


async def get_client_by_public_id(session, client_public_id: uuid.UUID) -> Optional[Client]:
    stmt = select(Client).where(Client.public_id == client_public_id, Client.deleted_at.is_(None))
    res = await session.execute(stmt)
    return res.scalar_one_or_none()
