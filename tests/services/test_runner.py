import asyncio
import pytest
from unittest.mock import Mock
from focus_timer.config.config import SessionConfig
from focus_timer.models.session import SessionType
from focus_timer.services.background import BackgroundTasks
from focus_timer.services.engine import SessionEngine
from focus_timer.services.persistence import SessionRecorder
from focus_timer.services.runner import TimerRunner

async def wait_for(predicate, timeout=5.0):
    """Yield to the loop until predicate() holds"""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.001)

@pytest.fixture
def runner_parts():
    engine = SessionEngine(SessionConfig(focus_duration=1, auto_start_breaks=False, system_notifications=False))
    tasks = BackgroundTasks()
    store = Mock()
    store.create_session.return_value = 1
    engine.subscribe(SessionRecorder(store, tasks))
    yield engine, tasks, store
    tasks.shutdown()

def test_handle_command_maps_aliases(runner_parts):
    engine, tasks, _ = runner_parts
    runner = TimerRunner(engine, tasks)

    runner.handle_command("s")
    assert engine.is_running
    runner.handle_command("toggle")
    assert not engine.is_running
    runner.handle_command("")
    assert engine.is_running
    runner.handle_command("skip")
    assert engine.type is SessionType.BREAK
    runner.handle_command("quit")
    assert runner.running is False

def test_unknown_command_is_ignored(runner_parts):
    engine, tasks, _ = runner_parts
    display = Mock()
    runner = TimerRunner(engine, tasks, display=display)

    runner.handle_command("explode")

    assert engine.state.type is SessionType.FOCUS
    display.show_message.assert_called_once()

@pytest.mark.asyncio
async def test_runner_ticks_to_completion(runner_parts):
    """The runner drives a one-minute focus session through to its break"""
    engine, tasks, store = runner_parts
    runner = TimerRunner(engine, tasks, tick_interval=0.001)

    run_task = asyncio.create_task(runner.run())
    runner.submit("start")
    await wait_for(lambda: engine.type is SessionType.BREAK)
    runner.submit("quit")
    await asyncio.wait_for(run_task, timeout=5)

    assert engine.iteration_count == 1
    assert runner.tick_count >= 60
    store.create_session.assert_called_once()
    assert store.create_session.call_args.args[0].duration_minutes == 1

@pytest.mark.asyncio
async def test_shutdown_flushes_focus_session(runner_parts):
    engine, tasks, store = runner_parts
    engine.apply_config(engine.config.model_copy(update={"focus_duration": 25}))
    engine.start()
    for _ in range(90):
        engine.tick()

    runner = TimerRunner(engine, tasks, tick_interval=10)
    run_task = asyncio.create_task(runner.run())
    runner.submit("quit")
    await asyncio.wait_for(run_task, timeout=5)

    assert engine.elapsed_seconds == 0
    assert engine.type is SessionType.FOCUS
    store.create_session.assert_called_once()
    assert store.create_session.call_args.args[0].duration_minutes == 1

@pytest.mark.asyncio
async def test_runner_polls_config(runner_parts):
    engine, tasks, _ = runner_parts
    poll = Mock()
    runner = TimerRunner(engine, tasks, tick_interval=0.001, poll=poll, poll_interval=0.001)

    run_task = asyncio.create_task(runner.run())
    await wait_for(lambda: poll.call_count >= 2)
    runner.submit("quit")
    await asyncio.wait_for(run_task, timeout=5)

@pytest.mark.asyncio
async def test_paused_engine_does_not_tick(runner_parts):
    engine, tasks, _ = runner_parts
    runner = TimerRunner(engine, tasks, tick_interval=0.001)

    run_task = asyncio.create_task(runner.run())
    await asyncio.sleep(0.05)
    runner.submit("quit")
    await asyncio.wait_for(run_task, timeout=5)

    assert engine.elapsed_seconds == 0
    assert runner.tick_count == 0
