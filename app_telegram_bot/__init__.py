"""Telegram mini app bot plugin for the app manager."""
__version__ = "0.1.0"
