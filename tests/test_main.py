import time
from io import StringIO
from unittest.mock import Mock
from rich.console import Console
from focus_timer.config.settings import Settings
from focus_timer.main import FocusTimer
from focus_timer.services.display import TerminalDisplay

class SlowStore:
    """Session store whose saves take a while, logging calls in order"""

    def __init__(self):
        self.calls = []

    def create_session(self, record):
        time.sleep(0.2)
        self.calls.append(("save", record.duration_minutes))
        return 1

    def close(self):
        self.calls.append(("close", None))

def make_timer(store):
    display = TerminalDisplay(Console(file=StringIO(), width=100))
    return FocusTimer(settings=Settings(CONFIG_FILE=None), db=store, display=display)

def test_close_lets_pending_save_finish_first():
    store = SlowStore()
    timer = make_timer(store)

    timer.engine.start()
    for _ in range(90):
        timer.engine.tick()
    timer.engine.restart()
    timer.close()

    assert store.calls == [("save", 1), ("close", None)]

def test_completion_sound_rings_on_automatic_transition():
    timer = make_timer(SlowStore())
    timer.completion_sound.player = Mock()

    timer.engine.start()
    for _ in range(25 * 60):
        timer.engine.tick()
    timer.close()

    timer.completion_sound.player.play.assert_called_once_with()
