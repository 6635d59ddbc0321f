import uuid
from enum import Enum
from decimal import Decimal
from datetime import datetime
from sqlalchemy import Text, ForeignKey, Numeric, Integer, Uuid, TIMESTAMP, func, Enum as SQLEnum, \
    CheckConstraint, UniqueConstraint, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ticket_engine.core.database import Base


class PaymentState(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tier_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("ticket_tiers.id", ondelete="RESTRICT"), nullable=False,
                                               index=True)
    # copied from the tier so redemption never needs a join
    event_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("events.id", ondelete="RESTRICT"), nullable=False,
                                                index=True)
    buyer_id: Mapped[str] = mapped_column(Text, nullable=False)
    quantity_purchased: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity_redeemed: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    payment_state: Mapped[PaymentState] = mapped_column(
        SQLEnum(PaymentState, name="payment_state", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=PaymentState.PENDING
    )
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    service_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_paid: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    last_redeemed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    tier: Mapped["TicketTier"] = relationship(lazy="raise")
    scans: Mapped[list["TicketScan"]] = relationship(back_populates="ticket", lazy="raise")

    __table_args__ = (
        CheckConstraint("quantity_purchased > 0", name="chk_ticket_qty_pos"),
        CheckConstraint("quantity_redeemed >= 0", name="chk_ticket_redeemed_nonneg"),
        CheckConstraint("quantity_redeemed <= quantity_purchased", name="chk_ticket_no_over_redeem"),
        CheckConstraint("unit_price >= 0", name="chk_ticket_unit_price_nonneg"),
        CheckConstraint("service_fee >= 0", name="chk_ticket_fee_nonneg"),
        Index("ix_tickets_buyer_created", "buyer_id", "created_at"),
    )

    @property
    def remaining(self) -> int:
        return self.quantity_purchased - self.quantity_redeemed


class TicketScan(Base):
    __tablename__ = "ticket_scans"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tickets.id", ondelete="RESTRICT"), nullable=False,
                                                 index=True)
    scan_number: Mapped[int] = mapped_column(Integer, nullable=False)
    device_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    scanned_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    ticket: Mapped["Ticket"] = relationship(back_populates="scans", lazy="raise")

    __table_args__ = (
        UniqueConstraint("ticket_id", "scan_number", name="uq_ticket_scan_number"),
        CheckConstraint("scan_number > 0", name="chk_scan_number_pos"),
    )
