#!/usr/bin/env python3
"""
app-telegram-bot - Telegram bot that opens the mini app

Mounts the Telegram bot app into a local app manager and keeps it running
until interrupted.
"""
import asyncio
import signal

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from app_telegram_bot import __version__

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="app-telegram-bot")
def cli():
    """app-telegram-bot - Telegram bot for the mini app"""
    pass


@cli.command()
@click.option("--log-level", default=None, help="Log level (defaults to TGBOT_LOG_LEVEL or INFO)")
@click.option("--json-logs", is_flag=True, help="Emit JSON log lines (defaults to TGBOT_LOG_JSON)")
def run(log_level: str, json_logs: bool):
    """Mount the bot and run until Ctrl+C"""
    from app_telegram_bot.logging_config import setup_logging

    setup_logging(level=log_level, json_format=json_logs or None)

    console.print(Panel.fit(
        "[bold cyan]app-telegram-bot[/bold cyan] - Telegram mini app bot\n"
        "[dim]Press Ctrl+C to stop[/dim]",
        border_style="cyan"
    ))

    asyncio.run(_serve())


async def _serve():
    from app_telegram_bot.app_manager import AppManager
    from app_telegram_bot.telegram import AppTelegramBot

    manager = AppManager()
    manager.register(AppTelegramBot)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            pass

    try:
        await manager.mount_all()
        await stop_event.wait()
    finally:
        await manager.unmount_all()


@cli.command()
def config():
    """Show the effective configuration"""
    from app_telegram_bot.telegram.models import TelegramBotConfig

    cfg = TelegramBotConfig.from_env().to_safe_dict()
    tunnel = cfg.pop("tunnel")

    table = Table(title="Telegram Bot Configuration", show_header=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    for key, value in cfg.items():
        table.add_row(key, "[dim]not set[/dim]" if value in (None, "") else str(value))
    for key, value in tunnel.items():
        table.add_row(f"tunnel.{key}", str(value))

    console.print(table)


if __name__ == "__main__":
    cli()
