import logging
from typing import Mapping, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class ProfileDirectory(Protocol):
    """Maps a buyer identity to a display name. Used for presentation only."""

    async def display_name(self, buyer_id: str) -> str | None:
        ...


class StaticProfileDirectory:
    def __init__(self, names: Mapping[str, str] | None = None) -> None:
        self._names = dict(names or {})

    async def display_name(self, buyer_id: str) -> str | None:
        return self._names.get(buyer_id)


async def resolve_display_name(profiles: ProfileDirectory | None, buyer_id: str) -> str:
    if profiles is None:
        return buyer_id
    try:
        name = await profiles.display_name(buyer_id)
    except Exception:
        # the admission is already recorded; a missing name must not fail the scan
        logger.warning("Profile lookup failed for buyer %s", buyer_id, exc_info=True)
        return buyer_id
    return name or buyer_id
