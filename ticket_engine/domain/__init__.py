from .events.models import Event
from .tiers.models import TicketTier
from .tickets.models import Ticket, TicketScan, PaymentState

__all__ = ("Event", "TicketTier", "Ticket", "TicketScan", "PaymentState")
