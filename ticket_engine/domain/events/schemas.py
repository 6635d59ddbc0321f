import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from ticket_engine.domain.tiers.schemas import TierCreateDTO, TierReadDTO


class EventCreateDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    title: str = Field(min_length=1, max_length=200)
    host_id: str = Field(min_length=1, max_length=200)
    starts_at: datetime
    tiers: list[TierCreateDTO] = Field(min_length=1)

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title cannot be blank")
        return value

    @field_validator("starts_at")
    @classmethod
    def _require_tz(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("starts_at must include a timezone")
        return value

    @model_validator(mode="after")
    def _unique_tier_names(self):
        names = [t.name.casefold() for t in self.tiers]
        if len(names) != len(set(names)):
            raise ValueError("Tier names must be unique within an event")
        return self


class EventReadDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra='forbid')

    id: uuid.UUID
    title: str
    host_id: str
    starts_at: datetime
    tiers: list[TierReadDTO] = Field(default_factory=list)
