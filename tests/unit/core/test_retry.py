import pytest
from sqlalchemy.exc import IntegrityError, DBAPIError, InterfaceError, TimeoutError as PoolTimeoutError
from ticket_engine.core import config
from ticket_engine.core.retry import committed_step, read_step, is_transient_error
from ticket_engine.domain.exceptions import CapacityExceeded, StorageFailure
from tests.helper import session_mock, locked_error


@pytest.mark.parametrize("exc, expected", [
    (locked_error(), True),
    (InterfaceError("SELECT 1", {}, Exception("closed")), True),
    (PoolTimeoutError("pool exhausted"), True),
    (DBAPIError("SELECT 1", {}, Exception("gone"), connection_invalidated=True), True),
    (DBAPIError("SELECT 1", {}, Exception("syntax")), False),
    (IntegrityError("INSERT", {}, Exception("fk")), False),
    (CapacityExceeded(), False),
    (ValueError("x"), False),
])
def test_is_transient_error(exc, expected):
    assert is_transient_error(exc) is expected


@pytest.mark.asyncio
async def test_committed_step_commits_and_returns_result(mocker):
    db = session_mock(mocker)
    step = mocker.AsyncMock(return_value=5)

    assert await committed_step(db, step, name="reserve") == 5

    step.assert_awaited_once()
    db.commit.assert_awaited_once()
    db.rollback.assert_not_awaited()


@pytest.mark.asyncio
async def test_committed_step_retries_transient_errors(mocker, no_retry_wait):
    db = session_mock(mocker)
    step = mocker.AsyncMock(side_effect=[locked_error(), locked_error(), "ok"])

    assert await committed_step(db, step, name="reserve") == "ok"

    assert step.await_count == 3
    assert db.rollback.await_count == 2
    db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_committed_step_retries_failed_commit(mocker, no_retry_wait):
    db = session_mock(mocker)
    db.commit.side_effect = [locked_error(), None]
    step = mocker.AsyncMock(return_value=1)

    assert await committed_step(db, step, name="create_ticket") == 1

    assert step.await_count == 2
    db.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_committed_step_domain_error_is_not_retried(mocker, no_retry_wait):
    db = session_mock(mocker)
    step = mocker.AsyncMock(side_effect=CapacityExceeded(ctx={"remaining": 0}))

    with pytest.raises(CapacityExceeded):
        await committed_step(db, step, name="reserve")

    step.assert_awaited_once()
    db.rollback.assert_awaited_once()
    db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_committed_step_exhausted_retries_raise_storage_failure(mocker, no_retry_wait):
    mocker.patch.object(config, "STORAGE_RETRY_ATTEMPTS", 3)
    db = session_mock(mocker)
    step = mocker.AsyncMock(side_effect=locked_error())

    with pytest.raises(StorageFailure) as e:
        await committed_step(db, step, name="redeem")

    assert step.await_count == 3
    assert e.value.ctx == {"step": "redeem"}
    assert isinstance(e.value.__cause__, type(locked_error()))


@pytest.mark.asyncio
async def test_read_step_returns_result_without_commit(mocker):
    db = session_mock(mocker)
    step = mocker.AsyncMock(return_value=["row"])

    assert await read_step(db, step, name="event_availability") == ["row"]

    db.commit.assert_not_awaited()
    db.rollback.assert_not_awaited()


@pytest.mark.asyncio
async def test_read_step_rolls_back_between_attempts(mocker, no_retry_wait):
    db = session_mock(mocker)
    step = mocker.AsyncMock(side_effect=[locked_error(), {"a": 1}])

    assert await read_step(db, step, name="event_titles") == {"a": 1}

    assert step.await_count == 2
    db.rollback.assert_awaited_once()
    db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_read_step_exhausted_retries_raise_storage_failure(mocker, no_retry_wait):
    mocker.patch.object(config, "STORAGE_RETRY_ATTEMPTS", 2)
    db = session_mock(mocker)
    step = mocker.AsyncMock(side_effect=locked_error())

    with pytest.raises(StorageFailure) as e:
        await read_step(db, step, name="host_summary")

    assert step.await_count == 2
    assert e.value.ctx == {"step": "host_summary"}
