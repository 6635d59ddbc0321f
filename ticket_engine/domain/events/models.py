import uuid
from datetime import datetime
from sqlalchemy.orm import mapped_column, Mapped, relationship
from sqlalchemy import Text, TIMESTAMP, Uuid, func, CheckConstraint
from ticket_engine.core.database import Base


class Event(Base):
    __tablename__ = "events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    host_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    starts_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    tiers: Mapped[list["TicketTier"]] = relationship(
        back_populates="event",
        lazy="selectin",
        order_by="TicketTier.display_order"
    )

    __table_args__ = (
        CheckConstraint("length(title) > 0", name="chk_event_title_not_empty"),
    )
