import uuid
from enum import Enum
from decimal import Decimal
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, computed_field
from ticket_engine.core.config import MAX_TICKETS_PER_PURCHASE
from ticket_engine.domain.tickets.models import PaymentState


class RedeemStatus(str, Enum):
    REDEEMED = "redeemed"
    NOT_FOUND = "not_found"
    WRONG_EVENT = "wrong_event"
    PAYMENT_INCOMPLETE = "payment_incomplete"
    FULLY_REDEEMED = "fully_redeemed"


class RedeemOutcome(BaseModel):
    """Result of one redeem attempt; ticket fields are empty only for NOT_FOUND."""
    model_config = ConfigDict(frozen=True)

    status: RedeemStatus
    ticket_id: uuid.UUID | None = None
    event_id: uuid.UUID | None = None
    buyer_id: str | None = None
    quantity_purchased: int = 0
    quantity_redeemed: int = 0

    @property
    def scan_number(self) -> int:
        return self.quantity_redeemed

    @property
    def remaining(self) -> int:
        return self.quantity_purchased - self.quantity_redeemed


class ScanStatus(str, Enum):
    VALID = "valid"
    MALFORMED = "malformed"
    NOT_FOUND = "not_found"
    WRONG_EVENT = "wrong_event"
    PAYMENT_INCOMPLETE = "payment_incomplete"
    FULLY_REDEEMED = "fully_redeemed"


class ScanResult(BaseModel):
    model_config = ConfigDict(frozen=True, extra='forbid')

    status: ScanStatus
    message: str
    ticket_id: uuid.UUID | None = None
    scan_number: int | None = None
    total_tickets: int | None = None
    remaining: int | None = None
    buyer_name: str | None = None

    @computed_field
    @property
    def valid(self) -> bool:
        return self.status == ScanStatus.VALID

    @classmethod
    def valid_entry(cls, *, ticket_id: uuid.UUID, scan_number: int, total_tickets: int, remaining: int,
                    buyer_name: str) -> "ScanResult":
        return cls(
            status=ScanStatus.VALID,
            message=f"Entry {scan_number} of {total_tickets}",
            ticket_id=ticket_id,
            scan_number=scan_number,
            total_tickets=total_tickets,
            remaining=remaining,
            buyer_name=buyer_name,
        )

    @classmethod
    def invalid(cls, status: ScanStatus, message: str, *, ticket_id: uuid.UUID | None = None,
                total_tickets: int | None = None) -> "ScanResult":
        if status == ScanStatus.VALID:
            raise ValueError("invalid() needs a failure status")
        return cls(status=status, message=message, ticket_id=ticket_id, total_tickets=total_tickets)


class TokenPayload(BaseModel):
    model_config = ConfigDict(frozen=True, extra='ignore', strict=True)

    ticket_id: str = Field(min_length=1)
    event_id: str
    buyer_id: str


class PurchaseRequestDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    buyer_id: str = Field(min_length=1, max_length=200)
    quantity: int = Field(default=1, gt=0, le=MAX_TICKETS_PER_PURCHASE)


class CheckInRequestDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    token: str = Field(min_length=1, max_length=4096)


class TicketReadDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra='forbid')

    id: uuid.UUID
    tier_id: uuid.UUID
    event_id: uuid.UUID
    buyer_id: str
    quantity_purchased: int
    quantity_redeemed: int
    payment_state: PaymentState
    unit_price: Decimal
    service_fee: Decimal
    total_paid: Decimal
    created_at: datetime
    last_redeemed_at: datetime | None = None

    @computed_field
    @property
    def remaining(self) -> int:
        return self.quantity_purchased - self.quantity_redeemed


class TicketWithTokenDTO(TicketReadDTO):
    token: str


class BuyerTicketsQueryDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    event_id: uuid.UUID | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=200)
