"""Reload trigger sources

A trigger source turns some external event (an OS signal, a file change,
an admin endpoint) into a call of the ReloadSignal trigger. Keeping the OS
binding behind this interface lets the coalescing logic be tested without
sending real process signals.
"""

import asyncio
import signal
from abc import ABC, abstractmethod
from collections.abc import Callable

from ..telemetry import get_logger

logger = get_logger(__name__)

# Trigger callback handed to sources: trigger(reason) -> whether it was queued
TriggerCallback = Callable[[str], bool]


class ReloadSource(ABC):
    """Reload trigger source base class.

    Each source is responsible for:
    1. Subscribing to its event when started
    2. Calling the trigger callback with its source_name as reason
    3. Releasing the subscription when stopped
    """

    source_name: str

    @abstractmethod
    async def start(self, trigger: TriggerCallback) -> None:
        """Start listening."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop listening."""
        pass


class SighupSource(ReloadSource):
    """SIGHUP trigger source.

    Registers a handler on the running event loop. On platforms without
    loop signal support (Windows) it logs a warning and stays inactive.
    """

    source_name = "sighup"

    def __init__(self, signum: int | None = None):
        self.signum = signum if signum is not None else getattr(signal, "SIGHUP", None)
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def active(self) -> bool:
        """Whether the signal handler is currently installed."""
        return self._loop is not None

    async def start(self, trigger: TriggerCallback) -> None:
        if self.signum is None:
            logger.warning("[reloader] SIGHUP not available on this platform")
            return

        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(self.signum, self._on_signal, trigger)
        except (NotImplementedError, RuntimeError, ValueError) as e:
            logger.warning(f"[reloader] cannot install signal handler for {self.signum}: {e}")
            return
        self._loop = loop

    async def stop(self) -> None:
        if self._loop is None:
            return
        self._loop.remove_signal_handler(self.signum)
        self._loop = None

    def _on_signal(self, trigger: TriggerCallback) -> None:
        logger.info("[reloader] received SIGHUP, triggering reload")
        trigger(self.source_name)
