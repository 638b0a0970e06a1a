"""
Data models for the Telegram bot module.
"""
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Mapping, Optional

DEFAULT_TUNNEL_HOST = "nokey@localhost.run"
DEFAULT_TUNNEL_REMOTE_PORT = 80
DEFAULT_TUNNEL_LOCAL_PORT = 17280
DEFAULT_TUNNEL_TIMEOUT = 10.0

_TRUE_VALUES = ("1", "true", "yes", "on")


class AppState(str, Enum):
    UNCONFIGURED = "unconfigured"
    STARTING = "starting"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class TunnelConfig:
    """Reverse SSH tunnel used to publish the mini app in development."""
    host: str = DEFAULT_TUNNEL_HOST
    remote_port: int = DEFAULT_TUNNEL_REMOTE_PORT
    local_port: int = DEFAULT_TUNNEL_LOCAL_PORT
    timeout: float = DEFAULT_TUNNEL_TIMEOUT
    ssh_binary: str = "ssh"

    def command(self) -> List[str]:
        return [
            self.ssh_binary,
            "-o", "StrictHostKeyChecking=no",
            "-o", "UserKnownHostsFile=/dev/null",
            "-R", f"{self.remote_port}:localhost:{self.local_port}",
            self.host,
        ]

    def to_dict(self) -> dict:
        return {
            "host": self.host,
            "remote_port": self.remote_port,
            "local_port": self.local_port,
            "timeout": self.timeout,
            "ssh_binary": self.ssh_binary,
        }


@dataclass
class TelegramBotConfig:
    """Configuration for the Telegram bot."""
    bot_token: str = ""
    web_app_url: Optional[str] = None
    environment: str = "production"
    # Register /start in the command menu even without a web app URL
    always_register_commands: bool = False
    tunnel: TunnelConfig = field(default_factory=TunnelConfig)

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TelegramBotConfig":
        env = os.environ if environ is None else environ
        web_app_url = (env.get("TG_WEB_APP_URL") or "").strip() or None
        tunnel = TunnelConfig(
            local_port=int(env.get("TG_TUNNEL_LOCAL_PORT", DEFAULT_TUNNEL_LOCAL_PORT)),
            timeout=float(env.get("TG_TUNNEL_TIMEOUT", DEFAULT_TUNNEL_TIMEOUT)),
        )
        return cls(
            bot_token=(env.get("TELEGRAM_BOT_TOKEN") or "").strip(),
            web_app_url=web_app_url,
            environment=env.get("NODE_ENV") or "production",
            always_register_commands=env.get("TG_ALWAYS_REGISTER_COMMANDS", "").lower() in _TRUE_VALUES,
            tunnel=tunnel,
        )

    def to_dict(self) -> dict:
        return {
            "bot_token": self.bot_token,
            "web_app_url": self.web_app_url,
            "environment": self.environment,
            "always_register_commands": self.always_register_commands,
            "tunnel": self.tunnel.to_dict(),
        }

    def to_safe_dict(self) -> dict:
        """Return config with token masked for display."""
        d = self.to_dict()
        if d["bot_token"]:
            token = d["bot_token"]
            if len(token) > 10:
                d["bot_token"] = token[:4] + "..." + token[-4:]
            else:
                d["bot_token"] = "***"
        return d


@dataclass
class MenuButtonResult:
    """Outcome of a best-effort chat menu button update."""
    ok: bool
    url: str
    error: Optional[str] = None
