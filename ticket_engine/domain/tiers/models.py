import uuid
from decimal import Decimal
from sqlalchemy import Text, ForeignKey, Numeric, Integer, Boolean, Uuid, CheckConstraint, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ticket_engine.core.database import Base


class TicketTier(Base):
    __tablename__ = "ticket_tiers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("events.id", ondelete="RESTRICT"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    sold: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=text("true"))
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))

    event: Mapped["Event"] = relationship(back_populates="tiers", lazy="raise")

    __table_args__ = (
        UniqueConstraint("event_id", "name", name="uq_tier_event_name"),
        CheckConstraint("price >= 0", name="chk_tier_price_nonneg"),
        CheckConstraint("capacity > 0", name="chk_tier_capacity_pos"),
        CheckConstraint("sold >= 0", name="chk_tier_sold_nonneg"),
        CheckConstraint("sold <= capacity", name="chk_tier_no_oversell"),
    )

    @property
    def remaining(self) -> int:
        return self.capacity - self.sold
