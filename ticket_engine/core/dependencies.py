from typing import Annotated
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession
from ticket_engine.core.database import get_db
from ticket_engine.domain.profiles.directory import ProfileDirectory

db_dependency = Annotated[AsyncSession, Depends(get_db)]


def get_profile_directory(request: Request) -> ProfileDirectory | None:
    return getattr(request.app.state, "profiles", None)


def get_device_id(x_device_id: Annotated[str | None, Header(max_length=200)] = None) -> str | None:
    return x_device_id


profiles_dependency = Annotated[ProfileDirectory | None, Depends(get_profile_directory)]
device_id_dependency = Annotated[str | None, Depends(get_device_id)]
