"""
Minimal host for mountable apps.

Apps are registered by class, instantiated with a back-reference to the
manager, mounted in registration order and unmounted in reverse.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Type

from .logging_config import get_logger

logger = get_logger("app_telegram_bot.app_manager")


class AbstractApp(ABC):
    """Base class for apps hosted by an AppManager."""
    app_id: str = ""
    name: str = ""

    def __init__(self, app_manager: "AppManager"):
        self.app_manager = app_manager

    @abstractmethod
    async def mount(self) -> None:
        ...

    @abstractmethod
    async def unmount(self) -> None:
        ...


class AppManager:
    def __init__(self):
        self._apps: Dict[str, AbstractApp] = {}

    def register(self, app_cls: Type[AbstractApp], *args, **kwargs) -> AbstractApp:
        app = app_cls(self, *args, **kwargs)
        if not app.app_id:
            raise ValueError(f"{app_cls.__name__} has no app_id")
        if app.app_id in self._apps:
            raise ValueError(f"App already registered: {app.app_id}")
        self._apps[app.app_id] = app
        logger.info(f"Registered app {app.app_id} ({app.name})")
        return app

    def get(self, app_id: str) -> Optional[AbstractApp]:
        return self._apps.get(app_id)

    @property
    def apps(self) -> List[AbstractApp]:
        return list(self._apps.values())

    async def mount_all(self):
        for app in self._apps.values():
            logger.info(f"Mounting {app.app_id}")
            await app.mount()

    async def unmount_all(self):
        """Unmount every app in reverse order; one failing app does not block the rest."""
        for app in reversed(list(self._apps.values())):
            try:
                await app.unmount()
                logger.info(f"Unmounted {app.app_id}")
            except Exception as e:
                logger.error(f"Failed to unmount {app.app_id}: {e}")
