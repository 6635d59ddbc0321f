import uuid
import pytest
from ticket_engine.domain.tickets import crud
from ticket_engine.domain.tickets.models import PaymentState, TicketScan
from ticket_engine.domain.tickets.schemas import RedeemStatus
from tests.helper import db_with_execute_first

TICKET_ID = uuid.UUID("c41f0e55-0000-4000-8000-00000000a001")
EVENT_ID = uuid.UUID("c41f0e55-0000-4000-8000-0000000000e1")
OTHER_EVENT_ID = uuid.UUID("c41f0e55-0000-4000-8000-0000000000e2")


def _ticket(mocker, *, event_id=EVENT_ID, state=PaymentState.COMPLETED, purchased=2, redeemed=2):
    return mocker.Mock(
        id=TICKET_ID,
        event_id=event_id,
        buyer_id="buyer-1",
        payment_state=state,
        quantity_purchased=purchased,
        quantity_redeemed=redeemed,
    )


@pytest.mark.asyncio
async def test_redeem_success_records_scan_with_new_count(mocker):
    row = mocker.Mock(id=TICKET_ID, event_id=EVENT_ID, buyer_id="buyer-1", quantity_purchased=3,
                      quantity_redeemed=2)
    db, _ = db_with_execute_first(mocker, row)

    outcome = await crud.redeem(db, TICKET_ID, EVENT_ID, device_id="gate-1")

    assert outcome.status == RedeemStatus.REDEEMED
    assert (outcome.scan_number, outcome.remaining) == (2, 1)
    scan = db.add.call_args.args[0]
    assert isinstance(scan, TicketScan)
    assert (scan.ticket_id, scan.scan_number, scan.device_id) == (TICKET_ID, 2, "gate-1")
    db.flush.assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.parametrize("ticket_kwargs, expected", [
    ({"event_id": OTHER_EVENT_ID, "redeemed": 0}, RedeemStatus.WRONG_EVENT),
    ({"state": PaymentState.PENDING, "redeemed": 0}, RedeemStatus.PAYMENT_INCOMPLETE),
    ({"state": PaymentState.FAILED, "redeemed": 0}, RedeemStatus.PAYMENT_INCOMPLETE),
    ({"purchased": 2, "redeemed": 2}, RedeemStatus.FULLY_REDEEMED),
])
async def test_redeem_no_match_is_classified_from_reread(mocker, ticket_kwargs, expected):
    db, _ = db_with_execute_first(mocker, None)
    db.scalar.return_value = _ticket(mocker, **ticket_kwargs)

    outcome = await crud.redeem(db, TICKET_ID, EVENT_ID)

    assert outcome.status == expected
    assert outcome.ticket_id == TICKET_ID
    db.add.assert_not_called()


@pytest.mark.asyncio
async def test_redeem_wrong_event_wins_over_exhausted_ticket(mocker):
    db, _ = db_with_execute_first(mocker, None)
    db.scalar.return_value = _ticket(mocker, event_id=OTHER_EVENT_ID, purchased=1, redeemed=1)

    outcome = await crud.redeem(db, TICKET_ID, EVENT_ID)

    assert outcome.status == RedeemStatus.WRONG_EVENT
    assert outcome.event_id == OTHER_EVENT_ID


@pytest.mark.asyncio
async def test_redeem_missing_ticket_is_not_found(mocker):
    db, _ = db_with_execute_first(mocker, None)
    db.scalar.return_value = None

    outcome = await crud.redeem(db, TICKET_ID, EVENT_ID)

    assert outcome.status == RedeemStatus.NOT_FOUND
    assert outcome.ticket_id is None


@pytest.mark.asyncio
async def test_create_adds_flushes_and_refreshes(mocker):
    db, _ = db_with_execute_first(mocker, None)

    ticket = await crud.create(
        db,
        tier_id=uuid.uuid4(),
        event_id=EVENT_ID,
        buyer_id="buyer-1",
        quantity=2,
        unit_price=10,
        service_fee=1,
        total_paid=21,
    )

    assert ticket.quantity_redeemed == 0
    assert ticket.payment_state == PaymentState.COMPLETED
    db.add.assert_called_once_with(ticket)
    db.flush.assert_awaited_once()
    db.refresh.assert_awaited_once_with(ticket)
