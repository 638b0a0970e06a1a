"""
Telegram bot app that opens the mini app.

Mounted by the AppManager. On mount it starts long-polling, answers /start
and plain text with a web app button, and points the chat menu button at the
mini app. In development the mini app URL comes from a localhost.run tunnel.
"""
import asyncio
from typing import Optional

from telegram.ext import Application, CommandHandler, MessageHandler, filters

from ..app_manager import AbstractApp, AppManager
from ..logging_config import get_logger
from .commands import (
    OPEN_APP_TEXT,
    START_BUTTON_LABEL,
    UNAVAILABLE_TEXT,
    WELCOME_TEXT,
    telegram_commands,
    web_app_keyboard,
    web_app_link,
    web_app_menu_button,
)
from .models import AppState, MenuButtonResult, TelegramBotConfig
from .tunnel import ReverseTunnel

logger = get_logger("app_telegram_bot.telegram.bot")


class AppTelegramBot(AbstractApp):
    app_id = "app-telegram-bot"
    name = "Telegram Bot App"

    def __init__(self, app_manager: AppManager, config: Optional[TelegramBotConfig] = None):
        super().__init__(app_manager)
        self._explicit_config = config
        self.config: TelegramBotConfig = config or TelegramBotConfig()
        self._app = None  # python-telegram-bot Application
        self._state = AppState.STOPPED
        self._web_app_url: Optional[str] = None
        self._tunnel: Optional[ReverseTunnel] = None
        self._timeout_task: Optional[asyncio.Task] = None
        self._awaiting_tunnel_url = False

    # ─── Properties ────────────────────────────────────────────────────

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def web_app_url(self) -> Optional[str]:
        return self._web_app_url

    @property
    def awaiting_tunnel_url(self) -> bool:
        return self._awaiting_tunnel_url

    # ─── Lifecycle ─────────────────────────────────────────────────────

    async def mount(self) -> None:
        if self._app is not None:
            raise RuntimeError("Telegram bot is already running")

        self.config = self._explicit_config or TelegramBotConfig.from_env()
        if not self.config.bot_token:
            logger.warning("TELEGRAM_BOT_TOKEN not set, Telegram bot will not work")
            self._state = AppState.UNCONFIGURED
            return

        self._state = AppState.STARTING
        self._web_app_url = self.config.web_app_url

        self._app = Application.builder().token(self.config.bot_token).build()
        self._register_handlers()
        logger.info("Telegram bot initialized")

        try:
            await self._app.initialize()
            await self._app.start()
            await self._app.updater.start_polling(drop_pending_updates=True)
        except Exception as e:
            logger.error_with(f"Failed to start telegram bot: {e}", error=type(e).__name__)
            await self._discard_app()
            raise
        logger.info_with("Telegram bot launched",
                         development=self.config.is_development, web_app_url=self._web_app_url)

        if self.config.is_development:
            await self._start_tunnel()
        else:
            logger.info("Production mode")
            if self._web_app_url:
                await self.set_menu_button(self._web_app_url)
            else:
                logger.warning("TG_WEB_APP_URL not set, menu button will not be configured")

        await self._register_commands()
        self._state = AppState.RUNNING

    async def unmount(self) -> None:
        if self._timeout_task is not None:
            if not self._timeout_task.done():
                self._timeout_task.cancel()
                try:
                    await self._timeout_task
                except asyncio.CancelledError:
                    pass
            self._timeout_task = None
        self._awaiting_tunnel_url = False

        if self._tunnel is not None:
            await self._tunnel.stop()
            self._tunnel = None

        if self._app is None:
            return

        await self._discard_app()
        logger.info("Telegram bot stopped")

    async def _discard_app(self):
        """Stop whatever part of the Application is running and drop it."""
        try:
            if self._app.updater and self._app.updater.running:
                await self._app.updater.stop()
            if self._app.running:
                await self._app.stop()
            await self._app.shutdown()
        except Exception as e:
            logger.error(f"Error stopping telegram bot: {e}")
        finally:
            self._app = None
            self._state = AppState.STOPPED

    # ─── Menu button / commands ────────────────────────────────────────

    async def set_menu_button(self, url: str) -> MenuButtonResult:
        """Point the chat menu button at the mini app. Never raises."""
        if self._app is None:
            logger.error("Error setting menu button: bot is not running")
            return MenuButtonResult(ok=False, url=url, error="bot is not running")
        try:
            await self._app.bot.set_chat_menu_button(menu_button=web_app_menu_button(url))
        except Exception as e:
            logger.error_with(f"Error setting menu button: {e}", url=url, error=type(e).__name__)
            return MenuButtonResult(ok=False, url=url, error=str(e))
        logger.info_with(f"Chat menu button set to open mini app at {url}", url=web_app_link(url))
        return MenuButtonResult(ok=True, url=url)

    async def _register_commands(self):
        if not (self.config.web_app_url or self.config.always_register_commands):
            logger.warning("TG_WEB_APP_URL not set, bot commands will not include web app")
            return
        try:
            await self._app.bot.set_my_commands(telegram_commands())
            logger.info("Bot commands menu set")
        except Exception as e:
            logger.error(f"Failed to set bot commands: {e}")

    # ─── Development tunnel ────────────────────────────────────────────

    async def _start_tunnel(self):
        logger.info(f"Development mode detected, starting {self.config.tunnel.host} tunnel...")
        self._awaiting_tunnel_url = True
        self._tunnel = ReverseTunnel(self.config.tunnel, self._on_tunnel_url)
        await self._tunnel.start()
        self._timeout_task = asyncio.create_task(self._tunnel_timeout(self.config.tunnel.timeout))

    async def _on_tunnel_url(self, url: str):
        self._web_app_url = url
        self._awaiting_tunnel_url = False
        await self.set_menu_button(url)

    async def _tunnel_timeout(self, delay: float):
        await asyncio.sleep(delay)
        if not self._awaiting_tunnel_url:
            return
        self._awaiting_tunnel_url = False
        if self.config.web_app_url:
            logger.warning_with(f"Timeout: tunnel URL not received, falling back to {self.config.web_app_url}",
                                timeout=self.config.tunnel.timeout, url=self.config.web_app_url)
            await self.set_menu_button(self.config.web_app_url)
        else:
            logger.warning_with("Timeout: URL not received and no TG_WEB_APP_URL set",
                                timeout=self.config.tunnel.timeout)

    # ─── Handlers ──────────────────────────────────────────────────────

    def _register_handlers(self):
        self._app.add_handler(CommandHandler(
            "start", self._cmd_start, filters=filters.UpdateType.MESSAGE))
        # Edited messages are not answered
        self._app.add_handler(MessageHandler(
            filters.UpdateType.MESSAGE & filters.TEXT & ~filters.COMMAND, self._handle_text))
        self._app.add_error_handler(self._on_error)

    async def _cmd_start(self, update, context):
        url = self._web_app_url
        if url:
            await update.effective_message.reply_text(
                WELCOME_TEXT, reply_markup=web_app_keyboard(url, START_BUTTON_LABEL))
        else:
            await update.effective_message.reply_text(WELCOME_TEXT)

    async def _handle_text(self, update, context):
        logger.info(f"Received message: {update.effective_message.text}")
        url = self._web_app_url
        if url:
            await update.effective_message.reply_text(OPEN_APP_TEXT, reply_markup=web_app_keyboard(url))
        else:
            await update.effective_message.reply_text(UNAVAILABLE_TEXT)

    async def _on_error(self, update, context):
        logger.error(f"Error while handling update: {context.error}", exc_info=context.error)

    # ─── Status ────────────────────────────────────────────────────────

    def get_status(self) -> dict:
        return {
            "state": self._state.value,
            "web_app_url": self._web_app_url,
            "web_app_link": web_app_link(self._web_app_url) if self._web_app_url else None,
            "development": self.config.is_development,
            "tunnel_running": bool(self._tunnel and self._tunnel.running),
            "awaiting_tunnel_url": self._awaiting_tunnel_url,
        }
