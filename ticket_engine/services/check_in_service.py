import logging
import uuid
from sqlalchemy.ext.asyncio import AsyncSession
from ticket_engine.core import config
from ticket_engine.core.auditing import AuditSpan
from ticket_engine.core.retry import committed_step, read_step
from ticket_engine.domain.events import crud as events_crud
from ticket_engine.domain.exceptions import StorageFailure
from ticket_engine.domain.profiles.directory import ProfileDirectory, resolve_display_name
from ticket_engine.domain.tickets import crud as tickets_crud
from ticket_engine.domain.tickets import tokens
from ticket_engine.domain.tickets.schemas import ScanResult, ScanStatus, RedeemStatus, RedeemOutcome

logger = logging.getLogger(__name__)


def _parse_ticket_id(raw: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(raw)
    except ValueError:
        return None


async def _wrong_event_message(db: AsyncSession, ticket_event_id: uuid.UUID, expected_event_id: uuid.UUID) -> str:
    try:
        titles = await read_step(
            db, lambda: events_crud.get_event_titles(db, [ticket_event_id, expected_event_id]), name="event_titles"
        )
    except StorageFailure:
        logger.warning("Event titles unavailable for wrong-event scan of event %s", ticket_event_id)
        titles = {}
    ticket_title = titles.get(ticket_event_id, "another event")
    expected_title = titles.get(expected_event_id, "this event")
    return f'This ticket is for "{ticket_title}" not "{expected_title}"'


async def _outcome_to_result(
        db: AsyncSession,
        outcome: RedeemOutcome,
        expected_event_id: uuid.UUID,
        profiles: ProfileDirectory | None
) -> ScanResult:
    if outcome.status == RedeemStatus.REDEEMED:
        return ScanResult.valid_entry(
            ticket_id=outcome.ticket_id,
            scan_number=outcome.scan_number,
            total_tickets=outcome.quantity_purchased,
            remaining=outcome.remaining,
            buyer_name=await resolve_display_name(profiles, outcome.buyer_id),
        )
    if outcome.status == RedeemStatus.WRONG_EVENT:
        return ScanResult.invalid(
            ScanStatus.WRONG_EVENT,
            await _wrong_event_message(db, outcome.event_id, expected_event_id),
            ticket_id=outcome.ticket_id,
        )
    if outcome.status == RedeemStatus.PAYMENT_INCOMPLETE:
        return ScanResult.invalid(
            ScanStatus.PAYMENT_INCOMPLETE, "Ticket payment not completed", ticket_id=outcome.ticket_id
        )
    if outcome.status == RedeemStatus.FULLY_REDEEMED:
        return ScanResult.invalid(
            ScanStatus.FULLY_REDEEMED,
            f"All {outcome.quantity_purchased} entries have been used",
            ticket_id=outcome.ticket_id,
            total_tickets=outcome.quantity_purchased,
        )
    return ScanResult.invalid(ScanStatus.NOT_FOUND, "Ticket not found")


async def check_in(
        db: AsyncSession,
        token: str,
        expected_event_id: uuid.UUID,
        *,
        profiles: ProfileDirectory | None = None,
        device_id: str | None = None
) -> ScanResult:
    """
    Validates a scanned token against the event the scanner is working for and,
    when it is good, consumes one admission from the ticket.
    Every rejection comes back as a ScanResult variant, never as an exception;
    only storage failures raise. Safe to call concurrently for the same token.
    """
    async with AuditSpan(
        scope="CHECK_IN",
        action="SCAN_TICKET",
        object_type="ticket",
        event_id=expected_event_id,
        meta={"device_id": device_id}
    ) as span:
        payload = tokens.decode(token, signing_key=config.TOKEN_SIGNING_KEY)
        if isinstance(payload, tokens.Malformed):
            span.meta["result"] = ScanStatus.MALFORMED.value
            span.meta["reason"] = payload.reason
            return ScanResult.invalid(ScanStatus.MALFORMED, "Invalid code format")

        ticket_id = _parse_ticket_id(payload.ticket_id)
        ticket = None
        if ticket_id is not None:
            ticket = await committed_step(db, lambda: tickets_crud.load(db, ticket_id), name="load_ticket")
        if ticket is None:
            span.meta["result"] = ScanStatus.NOT_FOUND.value
            return ScanResult.invalid(ScanStatus.NOT_FOUND, "Ticket not found")

        # the step below may roll back, which expires the loaded row
        buyer_id = ticket.buyer_id
        span.ticket_id = ticket_id
        span.object_id = ticket_id
        span.buyer_id = buyer_id

        outcome = await committed_step(
            db,
            lambda: tickets_crud.redeem(db, ticket_id, expected_event_id, device_id=device_id),
            name="redeem"
        )
        result = await _outcome_to_result(db, outcome, expected_event_id, profiles)
        span.meta["result"] = result.status.value
        if result.valid:
            span.meta["scan_number"] = result.scan_number
        return result
