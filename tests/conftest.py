import pytest
from datetime import datetime
from focus_timer.config.config import SessionConfig
from focus_timer.services.background import BackgroundTasks
from focus_timer.services.database import DatabaseManager
from focus_timer.services.engine import SessionEngine

START_TIME = datetime(2024, 1, 1, 9, 0, 0)

@pytest.fixture
def clock():
    """Fixed clock so started_at is predictable"""
    return lambda: START_TIME

@pytest.fixture
def session_config():
    """25/5/15 configuration with breaks auto-starting and notifications off"""
    return SessionConfig(
        focus_duration=25,
        break_duration=5,
        long_break_duration=15,
        long_break_interval=4,
        auto_start_breaks=True,
        auto_start_focus=False,
        system_notifications=False
    )

@pytest.fixture
def events():
    """Collects every event emitted by the engine fixture"""
    return []

@pytest.fixture
def engine(session_config, clock, events):
    """Engine recording its lifecycle events"""
    engine = SessionEngine(session_config, clock=clock)
    engine.subscribe(events.append)
    return engine

@pytest.fixture
def tasks():
    """Background task runner, drained and shut down after each test"""
    tasks = BackgroundTasks(max_workers=1)
    yield tasks
    tasks.drain(timeout=5)
    tasks.shutdown()

@pytest.fixture
def db():
    """Provide a test database instance"""
    db = DatabaseManager(":memory:")  # Use in-memory database for testing
    yield db
    db.close()

@pytest.fixture
def run_ticks():
    """Tick an engine count times, returning how many ticks caused a transition"""
    def run(engine, count):
        return sum(1 for _ in range(count) if engine.tick())
    return run
