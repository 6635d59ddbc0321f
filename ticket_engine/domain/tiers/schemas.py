import uuid
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_validator, computed_field


class TierCreateDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    name: str = Field(min_length=1, max_length=100)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    capacity: int = Field(gt=0)
    display_order: int | None = Field(default=None, ge=0)
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Tier name cannot be blank")
        return value


class TierUpdateDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    name: str | None = Field(default=None, min_length=1, max_length=100)
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    capacity: int | None = Field(default=None, gt=0)
    display_order: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class TierReadDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra='forbid')

    id: uuid.UUID
    event_id: uuid.UUID
    name: str
    price: Decimal
    capacity: int
    sold: int
    is_active: bool
    display_order: int

    @computed_field
    @property
    def remaining(self) -> int:
        return self.capacity - self.sold


class TierAvailabilityDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    tier_id: uuid.UUID
    capacity: int
    sold: int
    remaining: int
