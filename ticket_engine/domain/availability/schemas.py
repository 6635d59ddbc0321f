import uuid
from decimal import Decimal
from pydantic import BaseModel, ConfigDict


class TierUsageDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    tier_id: uuid.UUID
    name: str
    price: Decimal
    is_active: bool
    capacity: int
    sold: int
    remaining: int
    redeemed: int
    revenue: Decimal
    fees: Decimal


class EventAvailabilityDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_id: uuid.UUID
    total_capacity: int
    total_sold: int
    total_remaining: int
    total_redeemed: int
    revenue: Decimal
    fees: Decimal
    tiers: list[TierUsageDTO]


class HostSummaryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    host_id: str
    events_count: int
    upcoming_events_count: int
    total_capacity: int
    total_sold: int
    total_redeemed: int
    revenue: Decimal
    events: list[EventAvailabilityDTO]
