"""
Command definitions and message/keyboard helpers for the Telegram bot.
"""
from dataclasses import dataclass
from typing import List

from telegram import (
    BotCommand as TGBotCommand,
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    MenuButtonWebApp,
    WebAppInfo,
)

START_PARAM = "startapp=start"

WELCOME_TEXT = "🌟 Добро пожаловать!"
OPEN_APP_TEXT = "Открываем mini app:"
UNAVAILABLE_TEXT = "Mini app пока недоступно, попробуйте позже."
START_BUTTON_LABEL = "🚀 Открыть приложение"
APP_BUTTON_LABEL = "Открыть Mini App"
MENU_BUTTON_LABEL = "Открыть Mini App"


@dataclass
class BotCommand:
    """Telegram bot command definition."""
    command: str
    description: str


COMMANDS: List[BotCommand] = [
    BotCommand("start", "Запустить бота и открыть mini app"),
]


def telegram_commands() -> List[TGBotCommand]:
    return [TGBotCommand(cmd.command, cmd.description) for cmd in COMMANDS]


def web_app_link(url: str) -> str:
    """Append the fixed start parameter the mini app expects."""
    return f"{url}?{START_PARAM}"


def web_app_keyboard(url: str, label: str = APP_BUTTON_LABEL) -> InlineKeyboardMarkup:
    """Single-button inline keyboard opening the mini app."""
    return InlineKeyboardMarkup([
        [InlineKeyboardButton(label, web_app=WebAppInfo(url=web_app_link(url)))]
    ])


def web_app_menu_button(url: str) -> MenuButtonWebApp:
    return MenuButtonWebApp(text=MENU_BUTTON_LABEL, web_app=WebAppInfo(url=web_app_link(url)))
