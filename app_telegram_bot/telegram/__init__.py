"""
Telegram bot app for the mini app.

Starts the bot on mount, answers /start and plain text with a button that
opens the mini app, and manages the development tunnel.
"""
from .bot import AppTelegramBot

__all__ = ["AppTelegramBot"]
