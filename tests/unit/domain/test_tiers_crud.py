import uuid
import pytest
from ticket_engine.domain.tiers import crud
from ticket_engine.domain.exceptions import TierNotFound, TierInactive, CapacityExceeded, CapacityBelowSold
from tests.helper import session_mock, db_with_execute_first

TIER_ID = uuid.UUID("93c2aa10-0000-4000-8000-000000000001")


def _tier(mocker, *, capacity=10, sold=10, is_active=True):
    return mocker.Mock(id=TIER_ID, capacity=capacity, sold=sold, is_active=is_active, remaining=capacity - sold)


@pytest.mark.asyncio
async def test_reserve_returns_remaining_when_update_matches(mocker):
    db = session_mock(mocker)
    db.scalar.return_value = 7

    assert await crud.reserve(db, TIER_ID, 3) == 7
    db.scalar.assert_awaited_once()


@pytest.mark.asyncio
async def test_reserve_unknown_tier_raises_not_found(mocker):
    db = session_mock(mocker)
    db.scalar.side_effect = [None, None]

    with pytest.raises(TierNotFound):
        await crud.reserve(db, TIER_ID, 1)


@pytest.mark.asyncio
async def test_reserve_inactive_tier_raises_tier_inactive(mocker):
    db = session_mock(mocker)
    db.scalar.side_effect = [None, _tier(mocker, sold=0, is_active=False)]

    with pytest.raises(TierInactive):
        await crud.reserve(db, TIER_ID, 1)


@pytest.mark.asyncio
async def test_reserve_without_room_raises_capacity_exceeded_with_remaining(mocker):
    db = session_mock(mocker)
    db.scalar.side_effect = [None, _tier(mocker, capacity=10, sold=9)]

    with pytest.raises(CapacityExceeded) as e:
        await crud.reserve(db, TIER_ID, 2)

    assert e.value.ctx["remaining"] == 1
    assert e.value.ctx["requested"] == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("returned, expected", [(TIER_ID, True), (None, False)])
async def test_release_reports_whether_a_row_changed(mocker, returned, expected):
    db = session_mock(mocker)
    db.scalar.return_value = returned

    assert await crud.release(db, TIER_ID, 2) is expected


@pytest.mark.asyncio
async def test_availability_derives_remaining(mocker):
    db, _ = db_with_execute_first(mocker, mocker.Mock(id=TIER_ID, capacity=10, sold=4))

    dto = await crud.availability(db, TIER_ID)

    assert (dto.capacity, dto.sold, dto.remaining) == (10, 4, 6)


@pytest.mark.asyncio
async def test_availability_unknown_tier_raises_not_found(mocker):
    db, _ = db_with_execute_first(mocker, None)

    with pytest.raises(TierNotFound):
        await crud.availability(db, TIER_ID)


@pytest.mark.asyncio
async def test_set_capacity_below_sold_raises(mocker):
    db = session_mock(mocker)
    db.scalar.side_effect = [None, _tier(mocker, capacity=10, sold=6)]

    with pytest.raises(CapacityBelowSold):
        await crud.set_capacity(db, TIER_ID, 5)


@pytest.mark.asyncio
async def test_set_capacity_unknown_tier_raises_not_found(mocker):
    db = session_mock(mocker)
    db.scalar.side_effect = [None, None]

    with pytest.raises(TierNotFound):
        await crud.set_capacity(db, TIER_ID, 5)
