"""ReloadSignal - 合并式重载触发器

多个生产者可以随时请求重载，不会阻塞，也不会无界排队：
- 单槽位：最多只有一个待处理的重载
- 槽位已满时 trigger() 直接返回 False（被合并）
- 单个消费循环串行执行重载，不会重叠

重载失败只记录日志，不向外传播，服务继续使用旧配置。
"""

import asyncio
import threading
from collections.abc import Iterable

from .. import config
from ..telemetry import get_logger, metrics
from .retry import LoadFunc, call_load
from .sources import ReloadSource

logger = get_logger(__name__)


class ReloadSignal:
    """单槽位合并重载信号

    trigger() 可以在任意线程调用；跨线程唤醒通过
    loop.call_soon_threadsafe 投递到消费循环所在的事件循环。

    同一时刻只允许一个消费循环。唤醒事件在每次 listen() 时
    于当前事件循环中创建，循环结束后可以在另一个事件循环中重新 listen()。
    """

    def __init__(self, name: str = "reloader"):
        self.name = name
        self._lock = threading.Lock()
        self._pending = False
        self._reason = ""
        self._wakeup: asyncio.Event | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def listening(self) -> bool:
        """是否有消费循环正在运行"""
        return self._loop is not None

    @property
    def pending(self) -> bool:
        """是否有待处理的重载"""
        return self._pending

    def trigger(self, reason: str = "programmatic") -> bool:
        """请求一次重载

        Args:
            reason: 触发原因（用于日志和指标）

        Returns:
            True 表示已放入槽位，False 表示已有待处理重载（被合并）
        """
        with self._lock:
            if self._pending:
                coalesced = True
            else:
                coalesced = False
                self._pending = True
                self._reason = reason

        if coalesced:
            logger.info(f"[{self.name}] reload already pending, ignoring trigger ({reason})")
            if config.METRICS_ENABLED:
                metrics.inc("reload.coalesced")
            return False

        if config.METRICS_ENABLED:
            metrics.inc("reload.triggered", {"reason": reason})
        self._wake()
        return True

    def start(
        self,
        reload_func: LoadFunc,
        sources: Iterable[ReloadSource] = (),
    ) -> asyncio.Task:
        """在后台启动消费循环

        Returns:
            后台任务；取消它即停止监听，任务结束即 "done" 通知
        """
        return asyncio.create_task(self.listen(reload_func, sources), name=f"{self.name}-listen")

    async def listen(
        self,
        reload_func: LoadFunc,
        sources: Iterable[ReloadSource] = (),
    ) -> None:
        """消费循环：等待信号并串行执行重载，直到任务被取消

        Args:
            reload_func: 重载函数
            sources: 触发源（如 SighupSource），取消时自动停止

        Raises:
            RuntimeError: 已有另一个消费循环在运行
        """
        loop = asyncio.get_running_loop()
        wakeup = asyncio.Event()
        with self._lock:
            if self._loop is not None:
                raise RuntimeError(f"{self.name}: reload listener already running")
            self._loop = loop
            self._wakeup = wakeup
            if self._pending:
                # listen 之前到达的触发
                wakeup.set()

        started: list[ReloadSource] = []
        try:
            for source in sources:
                await source.start(self.trigger)
                started.append(source)
            logger.info(f"[{self.name}] listening for reload triggers")

            while True:
                await wakeup.wait()
                wakeup.clear()
                with self._lock:
                    if not self._pending:
                        continue
                    self._pending = False
                    reason = self._reason
                await self._do_reload(reload_func, reason)
        finally:
            for source in reversed(started):
                await source.stop()
            with self._lock:
                self._loop = None
                self._wakeup = None
            logger.info(f"[{self.name}] stopped")

    async def _do_reload(self, reload_func: LoadFunc, reason: str) -> None:
        """执行一次重载（异常隔离）"""
        logger.info(f"[{self.name}] starting configuration reload ({reason})...")
        try:
            await call_load(reload_func)
        except Exception as e:
            logger.error(f"[{self.name}] reload failed: {e}", exc_info=True)
            if config.METRICS_ENABLED:
                metrics.inc("reload.failed")
            return

        logger.info(f"[{self.name}] configuration reloaded successfully")
        if config.METRICS_ENABLED:
            metrics.inc("reload.completed")

    def _wake(self) -> None:
        """唤醒消费循环（线程安全）

        没有消费循环时什么都不做，槽位会在下一次 listen() 开始时被处理。
        """
        with self._lock:
            loop = self._loop
            wakeup = self._wakeup
        if loop is None or wakeup is None:
            return
        if _is_current_loop(loop):
            wakeup.set()
        elif not loop.is_closed():
            loop.call_soon_threadsafe(wakeup.set)


def _is_current_loop(loop: asyncio.AbstractEventLoop) -> bool:
    try:
        return asyncio.get_running_loop() is loop
    except RuntimeError:
        return False
