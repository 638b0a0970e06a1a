"""
Reverse SSH tunnel that publishes the local mini app server.

The relay prints the public URL on stdout. Every line is scanned for the
first https:// URL and each newly seen URL is passed to ``on_url``.
"""
import asyncio
import re
from typing import Awaitable, Callable, List, Optional

from ..logging_config import get_logger
from .models import TunnelConfig

logger = get_logger("app_telegram_bot.telegram.tunnel")

URL_RE = re.compile(r"https://[^\s]+")

STOP_GRACE_SECONDS = 5.0


def extract_url(text: str) -> Optional[str]:
    match = URL_RE.search(text)
    return match.group(0) if match else None


class ReverseTunnel:
    """Owns the ssh child process and its output readers."""

    def __init__(self, config: TunnelConfig, on_url: Callable[[str], Awaitable[None]]):
        self.config = config
        self._on_url = on_url
        self._process: Optional[asyncio.subprocess.Process] = None
        self._tasks: List[asyncio.Task] = []
        self._url_tasks: List[asyncio.Task] = []
        self.url: Optional[str] = None
        self.returncode: Optional[int] = None

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def start(self) -> bool:
        """Spawn ssh. Returns False (and logs) when the process cannot be started."""
        command = self.config.command()
        try:
            self._process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error_with(f"{self.config.host} tunnel process error: {e}", host=self.config.host)
            return False

        logger.info_with("Tunnel process started", host=self.config.host, pid=self._process.pid,
                         local_port=self.config.local_port)
        self._tasks = [
            asyncio.create_task(self._read_stdout(self._process.stdout)),
            asyncio.create_task(self._read_stderr(self._process.stderr)),
            asyncio.create_task(self._wait_exit()),
        ]
        return True

    async def _read_stdout(self, stream: asyncio.StreamReader):
        while True:
            line = await stream.readline()
            if not line:
                break
            output = line.decode(errors="replace").rstrip()
            if not output:
                continue
            logger.info(f"{self.config.host} tunnel stdout: {output}")
            url = extract_url(output)
            if url is None:
                logger.debug("No URL found in output")
                continue
            if url == self.url:
                continue
            logger.info_with(f"Extracted tunnel URL: {url}", host=self.config.host, url=url)
            self.url = url
            self._dispatch_url(url)

    def _dispatch_url(self, url: str):
        """Run the URL callback in its own task so stdout keeps draining."""
        self._url_tasks = [t for t in self._url_tasks if not t.done()]
        self._url_tasks.append(asyncio.create_task(self._on_url(url)))

    async def _read_stderr(self, stream: asyncio.StreamReader):
        while True:
            line = await stream.readline()
            if not line:
                break
            output = line.decode(errors="replace").rstrip()
            if output:
                logger.error(f"{self.config.host} tunnel stderr: {output}")

    async def _wait_exit(self):
        self.returncode = await self._process.wait()
        logger.info_with(f"{self.config.host} tunnel process closed with code: {self.returncode}",
                         host=self.config.host, returncode=self.returncode)

    async def stop(self):
        """Terminate the ssh process and wait for it to exit."""
        process = self._process
        if process is None:
            return

        if process.returncode is None:
            try:
                process.terminate()
            except ProcessLookupError:
                pass
            try:
                await asyncio.wait_for(process.wait(), timeout=STOP_GRACE_SECONDS)
            except asyncio.TimeoutError:
                logger.warning("Tunnel did not exit after SIGTERM, killing it")
                process.kill()
                await process.wait()

        tasks = self._tasks + self._url_tasks
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks = []
        self._url_tasks = []
        self._process = None
        logger.info("Tunnel stopped")
