import asyncio
import logging
import signal
import sys
import threading
from typing import Any, Callable, Optional

from focus_timer.models.events import SessionCompleted, SessionEvent, SessionRestarted
from focus_timer.models.session import SessionType
from focus_timer.services.background import BackgroundTasks
from focus_timer.services.display import TerminalDisplay
from focus_timer.services.engine import SessionEngine
from focus_timer.services.errors import RunnerError

logger = logging.getLogger(__name__)

COMMANDS = {
    "s": "start", "start": "start",
    "p": "pause", "pause": "pause",
    "t": "toggle", "toggle": "toggle", "": "toggle",
    "n": "next", "next": "next", "skip": "next",
    "r": "restart", "restart": "restart",
    "i": "info", "info": "info",
    "q": "quit", "quit": "quit", "exit": "quit",
}

class TimerRunner:
    """Asyncio host driving the session engine.

    The runner owns the tick cadence and is the only writer to the engine:
    user commands arrive on a queue and are applied between ticks, so no two
    engine operations ever interleave.
    """

    def __init__(
        self,
        engine: SessionEngine,
        tasks: BackgroundTasks,
        tick_interval: float = 1.0,
        poll: Optional[Callable[[], Any]] = None,
        poll_interval: float = 5.0,
        display: Optional[TerminalDisplay] = None,
        intent_id: Optional[int] = None,
        shutdown_timeout: float = 10.0
    ):
        self.engine = engine
        self.tasks = tasks
        self.tick_interval = tick_interval
        self.poll = poll
        self.poll_interval = poll_interval
        self.display = display
        self.intent_id = intent_id
        self.shutdown_timeout = shutdown_timeout

        self.running = False
        self.commands: asyncio.Queue = asyncio.Queue()
        self.shutdown_event = asyncio.Event()
        self.tick_count = 0

        if self.display is not None:
            self.engine.subscribe(self._show_event)

    def submit(self, command: str) -> None:
        """Queue a command from the event loop thread"""
        self.commands.put_nowait(command)

    def _setup_signal_handlers(self):
        """Set up handlers for system signals"""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, lambda: self.submit("quit"))
            except (NotImplementedError, RuntimeError):
                # Windows event loops do not support signal handlers
                logger.debug(f"Signal handler for {sig.name} unavailable")

    def start_stdin_reader(self) -> threading.Thread:
        """Feed stdin lines into the command queue from a daemon thread"""
        loop = asyncio.get_running_loop()

        def read_lines():
            for line in sys.stdin:
                loop.call_soon_threadsafe(self.commands.put_nowait, line.strip().lower())
            loop.call_soon_threadsafe(self.commands.put_nowait, "quit")

        reader = threading.Thread(target=read_lines, name="focus-timer-stdin", daemon=True)
        reader.start()
        return reader

    def handle_command(self, raw: str) -> None:
        """Apply one user command to the engine"""
        command = COMMANDS.get(raw.strip().lower())
        if command is None:
            logger.warning(f"Unknown command: {raw!r}")
            if self.display:
                self.display.show_message(f"Unknown command: {raw!r}", ok=False)
                self.display.show_help()
            return

        logger.debug(f"Handling command {command}")
        if command == "start":
            self.engine.start()
        elif command == "pause":
            self.engine.pause()
        elif command == "toggle":
            if self.engine.is_running:
                self.engine.pause()
            else:
                self.engine.start()
        elif command == "next":
            self.engine.next(manual=True)
        elif command == "restart":
            self.engine.restart()
        elif command == "info":
            if self.display:
                self.display.show_status(self.engine.state, self.intent_id)
        elif command == "quit":
            self.running = False
            self.shutdown_event.set()

    def _show_event(self, event: SessionEvent) -> None:
        if isinstance(event, (SessionCompleted, SessionRestarted)):
            self.display.show_status(self.engine.state, self.intent_id)

    async def run(self):
        """Run until a quit command or signal arrives"""
        logger.info("Starting focus timer runner...")
        self._setup_signal_handlers()
        self.running = True

        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.tick_interval
        next_poll = loop.time() + self.poll_interval

        try:
            while self.running:
                timeout = max(next_tick - loop.time(), 0)
                try:
                    command = await asyncio.wait_for(self.commands.get(), timeout=timeout)
                except asyncio.TimeoutError:
                    command = None

                if command is not None:
                    was_running = self.engine.is_running
                    self.handle_command(command)
                    if self.engine.is_running and not was_running:
                        next_tick = loop.time() + self.tick_interval
                    continue

                now = loop.time()
                if self.engine.is_running:
                    self.engine.tick()
                    self.tick_count += 1
                next_tick += self.tick_interval
                if next_tick < now:
                    # Fell behind (suspended laptop, blocked loop): resume cadence from now
                    next_tick = now + self.tick_interval

                if self.poll is not None and now >= next_poll:
                    self.poll()
                    next_poll = now + self.poll_interval
        except Exception as e:
            logger.error(f"Runner loop failed: {e}", exc_info=True)
            raise RunnerError(f"Runner loop failed: {e}")
        finally:
            await self.shutdown()

    async def shutdown(self):
        """Flush the live focus session and wait for in-flight side effects"""
        logger.info("Initiating graceful shutdown...")
        self.running = False
        self.shutdown_event.set()

        if self.engine.type is SessionType.FOCUS and self.engine.elapsed_seconds > 0:
            # restart() records eligible focus time before the process exits
            self.engine.restart()

        if self.tasks.pending:
            logger.info(f"Waiting for {self.tasks.pending} background task(s)...")
        try:
            await self.tasks.wait_until_done(timeout=self.shutdown_timeout)
        except Exception as e:
            logger.error(f"Error waiting for background tasks: {e}")
        if self.tasks.pending:
            logger.warning(f"{self.tasks.pending} background task(s) still running after {self.shutdown_timeout}s")
        logger.info("Focus timer stopped")
