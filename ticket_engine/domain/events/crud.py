import uuid
from typing import Iterable
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from .models import Event


async def get_event_by_id(db: AsyncSession, event_id: uuid.UUID) -> Event | None:
    stmt = select(Event).where(Event.id == event_id)
    result = await db.execute(stmt)
    return result.scalars().first()


async def get_event_titles(db: AsyncSession, event_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, str]:
    ids = set(event_ids)
    if not ids:
        return {}
    result = await db.execute(select(Event.id, Event.title).where(Event.id.in_(ids)))
    return {row.id: row.title for row in result}


async def list_host_events(db: AsyncSession, host_id: str) -> list[Event]:
    result = await db.scalars(select(Event).where(Event.host_id == host_id).order_by(Event.starts_at))
    return list(result.all())


async def create_event(db: AsyncSession, data: dict) -> Event:
    event = Event(**data)
    db.add(event)
    return event
