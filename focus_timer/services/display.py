from typing import Dict, Any, List, Optional
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from focus_timer.config.config import SessionConfig
from focus_timer.models.session import SessionState, SessionType, StoredSession

TYPE_STYLES = {
    SessionType.FOCUS: ("🎯", "bold red"),
    SessionType.BREAK: ("☕", "bold green"),
    SessionType.LONG_BREAK: ("🌴", "bold cyan"),
}

def format_seconds(seconds: int) -> str:
    """mm:ss, clamped at zero"""
    seconds = max(seconds, 0)
    return f"{seconds // 60:02d}:{seconds % 60:02d}"

class TerminalDisplay:
    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def render_status(self, state: SessionState, intent_id: Optional[int] = None) -> Panel:
        """Panel with the time left and iteration count of the live session"""
        emoji, style = TYPE_STYLES[state.type]

        status = Text()
        status.append(f"{emoji} {state.type.label}", style=style)
        status.append("  ▶ running" if state.is_running else "  ⏸ paused", style="dim")
        status.append(f"\n\n{format_seconds(state.time_remaining)}", style="bold white")
        status.append(f" / {state.duration_minutes:02d}:00", style="dim")
        status.append(f"\n\nIterations: {state.iteration_count}", style="yellow")
        if intent_id is not None:
            status.append(f"   Intent: #{intent_id}", style="magenta")

        return Panel(status, title="Focus Timer", expand=False)

    def show_status(self, state: SessionState, intent_id: Optional[int] = None):
        self.console.print(self.render_status(state, intent_id))

    def show_help(self):
        self.console.print(
            "[dim]Commands: [bold]s[/bold]tart  [bold]p[/bold]ause  "
            "[bold]n[/bold]ext  [bold]r[/bold]estart  [bold]i[/bold]nfo  [bold]q[/bold]uit[/dim]"
        )

    def show_message(self, message: str, ok: bool = True):
        style = "green" if ok else "red"
        self.console.print(f"[{style}]{message}[/{style}]")

    def show_sessions(self, sessions: List[StoredSession]):
        """Table of recorded focus sessions"""
        if not sessions:
            self.console.print("\n[yellow]No sessions recorded[/yellow]")
            return

        table = Table(title="Focus Sessions")
        table.add_column("ID", justify="right", style="dim")
        table.add_column("Started", style="cyan")
        table.add_column("Minutes", justify="right", style="bold green")
        table.add_column("Intent", justify="right", style="magenta")

        for session in sessions:
            table.add_row(
                str(session.id),
                session.started_at.strftime("%Y-%m-%d %H:%M"),
                str(session.duration_minutes),
                str(session.intent_id) if session.intent_id is not None else "-"
            )

        self.console.print(table)

    def show_stats(self, stats: Dict[str, Any], title: str = "Focus Statistics"):
        text = Text()
        text.append(f"\n📈 {title}\n", style="bold yellow")
        text.append(f"Sessions: {stats['session_count']}\n", style="dim")
        text.append(f"Focused: {stats['total_minutes']} minutes\n", style="bold green")
        text.append(f"Average: {stats['average_minutes']} minutes\n", style="dim")

        for row in stats.get("by_intent", []):
            label = f"#{row['intent_id']}" if row["intent_id"] is not None else "no intent"
            text.append(f"  • {label}: {row['total_minutes']} min ({row['session_count']} sessions)\n")

        self.console.print(Panel(text, expand=False))

    def show_config(self, config: SessionConfig):
        table = Table(title="Session Configuration", show_header=False)
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="bold")
        for name, value in config.model_dump().items():
            table.add_row(name, str(value))
        self.console.print(table)
