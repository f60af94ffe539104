"""
Tests for the enhancement poller.

asyncio.sleep is replaced with a recorder so the schedule can be asserted
exactly without waiting on the wall clock.
"""
import asyncio
import pytest

from client.poller import EnhancementPoller, PollState
from client.state import TaskStateStore
from models.task import Task

from fakes import SleepRecorder

INITIAL_DELAY = 2.0
INTERVAL = 3.0
MAX_ATTEMPTS = 5


def task(task_id: str = "t1", enhanced=None, title: str = "buy milk") -> Task:
    return Task(id=task_id, user_id="u1", title=title, enhanced_title=enhanced)


class ScriptedFetch:
    """
    Returns one scripted response per call; an Exception instance is raised instead.
    After the script runs out the last response repeats.
    """

    def __init__(self, events: list, responses: list):
        self.events = events
        self.responses = responses
        self.calls = 0

    async def __call__(self, user_id: str):
        self.events.append(("fetch", user_id))
        response = self.responses[min(self.calls, len(self.responses) - 1)]
        self.calls += 1
        if isinstance(response, Exception):
            raise response
        return response


def make_poller(responses, store=None, max_attempts=MAX_ATTEMPTS):
    events = []
    fetch = ScriptedFetch(events, responses)
    store = store or TaskStateStore([task()])
    poller = EnhancementPoller(
        fetch,
        store,
        initial_delay=INITIAL_DELAY,
        interval=INTERVAL,
        max_attempts=max_attempts,
        sleep=SleepRecorder(events),
    )
    return poller, store, fetch, events


@pytest.mark.unit
@pytest.mark.asyncio
async def test_times_out_after_exactly_max_attempts():
    poller, store, fetch, events = make_poller([[task()]])

    state = await poller.start("t1", "u1")

    assert state is PollState.TIMED_OUT
    assert fetch.calls == MAX_ATTEMPTS
    expected = [("sleep", INITIAL_DELAY)]
    for attempt in range(MAX_ATTEMPTS):
        expected.append(("fetch", "u1"))
        if attempt < MAX_ATTEMPTS - 1:
            expected.append(("sleep", INTERVAL))
    assert events == expected
    assert not store.is_enhancing("t1")
    assert store.get("t1").enhanced_title is None
    assert store.get("t1").title == "buy milk"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_marks_in_flight_before_first_fetch():
    poller, store, fetch, events = make_poller([[task()]])

    running = poller.start("t1", "u1")
    assert store.is_enhancing("t1")
    assert poller.state("t1") is PollState.AWAITING
    assert events == []

    await running
    assert poller.state("t1") is PollState.TIMED_OUT


@pytest.mark.unit
@pytest.mark.asyncio
async def test_stops_on_first_enhancement():
    enhanced = task(enhanced="Buy oat milk at the corner shop")
    poller, store, fetch, events = make_poller([[task()], [task(enhanced="")], [enhanced]])

    state = await poller.start("t1", "u1")

    assert state is PollState.RESOLVED
    assert fetch.calls == 3
    assert events[-1] == ("fetch", "u1")
    assert store.get("t1").enhanced_title == "Buy oat milk at the corner shop"
    assert not store.is_enhancing("t1")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_merge_keeps_list_order():
    store = TaskStateStore([task("t3"), task("t2"), task("t1")])
    listing = [task("t3"), task("t2", enhanced="Two"), task("t1")]
    poller, store, fetch, events = make_poller([listing], store=store)

    await poller.start("t2", "u1")

    assert [t.id for t in store.tasks] == ["t3", "t2", "t1"]
    assert store.get("t2").enhanced_title == "Two"
    assert store.get("t3").enhanced_title is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_fetch_failures_use_up_attempts():
    enhanced = task(enhanced="Buy milk")
    poller, store, fetch, events = make_poller([ConnectionError("offline"), RuntimeError("500"), [enhanced]])

    state = await poller.start("t1", "u1")

    assert state is PollState.RESOLVED
    assert fetch.calls == 3
    assert events.count(("sleep", INTERVAL)) == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_failures_on_every_attempt_time_out():
    poller, store, fetch, events = make_poller([ConnectionError("offline")], max_attempts=3)

    assert await poller.start("t1", "u1") is PollState.TIMED_OUT
    assert fetch.calls == 3
    assert not store.is_enhancing("t1")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_deleted_task_runs_to_timeout_harmlessly():
    poller, store, fetch, events = make_poller([[task("other")]])
    store.remove("t1")

    assert await poller.start("t1", "u1") is PollState.TIMED_OUT
    assert fetch.calls == MAX_ATTEMPTS
    assert store.get("t1") is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_concurrent_pollers_are_independent():
    store = TaskStateStore([task("a"), task("b")])
    listing_without = [task("a"), task("b")]
    listing_with_a = [task("a", enhanced="A!"), task("b")]
    poller, store, fetch, events = make_poller([listing_without, listing_without, listing_with_a], store=store)

    first = poller.start("a", "u1")
    second = poller.start("b", "u1")
    assert store.in_flight == frozenset({"a", "b"})

    results = await asyncio.gather(first, second)

    assert results == [PollState.RESOLVED, PollState.TIMED_OUT]
    assert store.get("a").enhanced_title == "A!"
    assert store.get("b").enhanced_title is None
    assert store.in_flight == frozenset()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_restart_supersedes_previous_poller():
    poller, store, fetch, events = make_poller([[task()]])

    first = poller.start("t1", "u1")
    second = poller.start("t1", "u1")

    assert await second is PollState.TIMED_OUT
    assert first.cancelled()
    assert fetch.calls == MAX_ATTEMPTS


@pytest.mark.unit
@pytest.mark.asyncio
async def test_cancel_hook():
    poller, store, fetch, events = make_poller([[task()]])

    running = poller.start("t1", "u1")
    assert poller.cancel("t1") is True
    with pytest.raises(asyncio.CancelledError):
        await running

    assert poller.state("t1") is PollState.CANCELLED
    assert not store.is_enhancing("t1")
    assert poller.cancel("t1") is False


@pytest.mark.unit
@pytest.mark.asyncio
async def test_shutdown_cancels_everything():
    store = TaskStateStore([task("a"), task("b")])
    poller, store, fetch, events = make_poller([[task("a"), task("b")]], store=store)
    poller.start("a", "u1")
    poller.start("b", "u1")

    await poller.shutdown()

    assert poller.active == []
    assert store.in_flight == frozenset()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_start_does_not_block_caller():
    gate = asyncio.Event()

    async def slow_sleep(seconds):
        await gate.wait()

    store = TaskStateStore([task()])
    poller = EnhancementPoller(
        ScriptedFetch([], [[task(enhanced="Done")]]), store, initial_delay=60, interval=60, sleep=slow_sleep
    )

    running = poller.start("t1", "u1")
    await asyncio.sleep(0)
    assert not running.done()
    assert poller.active == ["t1"]

    gate.set()
    assert await running is PollState.RESOLVED


@pytest.mark.unit
def test_max_attempts_must_be_positive():
    with pytest.raises(ValueError):
        EnhancementPoller(ScriptedFetch([], [[]]), TaskStateStore(), max_attempts=0)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_shutdown_forgets_finished_states():
    poller, store, fetch, events = make_poller([[task()]])
    await poller.start("t1", "u1")
    assert poller.state("t1") is PollState.TIMED_OUT

    await poller.shutdown()

    assert poller.state("t1") is PollState.IDLE
