import click
import sys
import asyncio
import logging
from datetime import datetime, timedelta
from pathlib import Path
from rich.console import Console
from focus_timer.config.config import load_app_config
from focus_timer.config.logging_config import setup_logging
from focus_timer.config.settings import settings
from focus_timer.services.database import DatabaseManager
from focus_timer.services.display import TerminalDisplay
from focus_timer.services.errors import ServiceError

# Set up logging
logger = logging.getLogger(__name__)

# Initialize console
console = Console()

@click.group()
@click.option('--debug', is_flag=True, help='Enable debug output')
@click.pass_context
def cli(ctx, debug):
    """Focus Timer - Pomodoro sessions in the terminal"""
    settings.validate_paths()
    setup_logging(settings.LOG_DIR, debug=debug or settings.DEBUG)
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

@cli.command()
@click.option('--config', 'config_path', type=click.Path(path_type=Path), default=None,
              help='JSON config file with session, interface and scripts sections')
@click.option('--intent', 'intent_id', type=int, default=None, help='Intent to attach focus sessions to')
@click.option('--no-auto-start', is_flag=True, help='Wait for the start command instead of starting right away')
@click.option('--desktop', is_flag=True, help='Also send desktop notifications')
def run(config_path, intent_id, no_auto_start, desktop):
    """Run the interactive focus timer"""
    from focus_timer.main import FocusTimer, check_environment

    check_environment()
    try:
        timer = FocusTimer(
            config_path=config_path,
            intent_id=intent_id,
            display=TerminalDisplay(console),
            desktop_notifications=desktop
        )
        asyncio.run(timer.run(auto_start=not no_auto_start))
    except ServiceError as e:
        logger.error(f"Focus timer failed: {e}")
        console.print(f"[red]Focus timer failed: {e}[/red]")
        sys.exit(1)

@cli.command()
@click.option('--days', type=int, default=None, help='Only sessions started in the last N days')
@click.option('--intent', 'intent_id', type=int, default=None, help='Only sessions for this intent')
@click.option('--limit', type=int, default=20, show_default=True, help='Maximum sessions to show')
def sessions(days, intent_id, limit):
    """List recorded focus sessions"""
    start = datetime.now() - timedelta(days=days) if days else None
    try:
        db = DatabaseManager(settings.DB_PATH)
        try:
            TerminalDisplay(console).show_sessions(
                db.get_sessions(start=start, intent_id=intent_id, limit=limit)
            )
        finally:
            db.close()
    except ServiceError as e:
        console.print(f"[red]Error listing sessions: {e}[/red]")
        sys.exit(1)

@cli.command()
@click.option('--days', type=int, default=7, show_default=True, help='Number of days to include')
def stats(days):
    """Show focus time statistics"""
    start = datetime.now() - timedelta(days=days)
    try:
        db = DatabaseManager(settings.DB_PATH)
        try:
            TerminalDisplay(console).show_stats(
                db.get_stats(start=start),
                title=f"Focus Statistics (last {days} days)"
            )
        finally:
            db.close()
    except ServiceError as e:
        console.print(f"[red]Error getting statistics: {e}[/red]")
        sys.exit(1)

@cli.command()
@click.option('--config', 'config_path', type=click.Path(path_type=Path), default=None,
              help='JSON config file to validate and show')
def config(config_path):
    """Show the effective session configuration"""
    try:
        app_config = load_app_config(config_path or settings.CONFIG_FILE)
    except ServiceError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    display = TerminalDisplay(console)
    display.show_config(app_config.session)
    active = [script for script in app_config.scripts if script.active]
    console.print(f"\nScripts: {len(app_config.scripts)} configured, {len(active)} active")

if __name__ == '__main__':
    cli()
