from ticket_engine.core.utils.serialization import normalize_ctx


class AppError(Exception):
    default_message = ""

    def __init__(self, message: str = "", *, ctx: dict | None = None) -> None:
        super().__init__(message or self.default_message or self.__class__.__name__)
        self.ctx = normalize_ctx(ctx or {})


class NotFound(AppError):
    pass
class Conflict(AppError):
    pass
class InvalidInput(AppError):
    pass
class Unprocessable(AppError):
    pass


class TierNotFound(NotFound):
    default_message = "Ticket tier not found"


class EventNotFound(NotFound):
    default_message = "Event not found"


class TicketNotFound(NotFound):
    default_message = "Ticket not found"


class TierInactive(Conflict):
    default_message = "Ticket tier is not on sale"


class CapacityExceeded(Conflict):
    default_message = "Not enough tickets available"


class SoldOut(Conflict):
    default_message = "No tickets left"


class CapacityBelowSold(Conflict):
    default_message = "Capacity cannot be lower than tickets already sold"


class StorageFailure(AppError):
    default_message = "Please try again"
