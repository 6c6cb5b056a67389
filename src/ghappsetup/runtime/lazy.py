"""LazyLoadGuard - 懒加载守卫

Lambda 冷启动时，多个并发调用可能同时需要配置。守卫保证：
1. 同一时刻最多只有一个调用方执行加载（其他调用方等待结果）
2. 成功后进入终态 LOADED，后续调用直接返回
3. 失败记录为 FAILED(err)，等待者看到同一个异常；下一次调用重新加载

状态流转：
    NOT_STARTED --ensure_loaded--> LOADING --成功--> LOADED
                                   LOADING --失败--> FAILED --ensure_loaded--> LOADING
                                   LOADING --取消--> NOT_STARTED
    任意状态 --reset--> NOT_STARTED

锁只保护状态切换，加载过程本身不持锁。
"""

import asyncio
import threading
from collections.abc import Awaitable, Callable
from enum import Enum

from .. import config
from ..telemetry import get_logger, metrics

logger = get_logger(__name__)


class LoadState(Enum):
    """懒加载状态"""

    NOT_STARTED = "not_started"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class LazyLoadGuard:
    """懒加载守卫

    状态完全属于实例本身，外部只能通过只读属性观察。
    """

    def __init__(
        self,
        load: Callable[[], Awaitable[None]],
        on_loaded: Callable[[], None] | None = None,
        on_reset: Callable[[], None] | None = None,
        poll_interval: float | None = None,
    ):
        """初始化守卫

        Args:
            load: 加载协程函数（通常已包含重试逻辑）
            on_loaded: 首次成功后的回调（如设置就绪标志）
            on_reset: reset() 时的回调（如清除就绪标志）
            poll_interval: 等待者轮询间隔（秒），None 使用配置默认值
        """
        self._load = load
        self._on_loaded = on_loaded
        self._on_reset = on_reset
        self._poll_interval = config.LAZY_LOAD_POLL_INTERVAL if poll_interval is None else poll_interval

        self._lock = threading.Lock()
        self._state = LoadState.NOT_STARTED
        self._error: BaseException | None = None
        self._generation = 0

    @property
    def state(self) -> LoadState:
        """当前状态"""
        return self._state

    @property
    def last_error(self) -> BaseException | None:
        """最近一次失败的异常（FAILED 状态下有效）"""
        return self._error

    @property
    def loaded(self) -> bool:
        return self._state is LoadState.LOADED

    async def ensure_loaded(self) -> None:
        """确保已加载，必要时执行加载

        Raises:
            Exception: 加载失败（加载方或等待者看到同一个异常）
            asyncio.CancelledError: 当前调用被取消
        """
        while True:
            with self._lock:
                if self._state is LoadState.LOADED:
                    return
                if self._state is not LoadState.LOADING:
                    # 成为加载方
                    self._state = LoadState.LOADING
                    self._error = None
                    self._generation += 1
                    generation = self._generation
                    break

            if await self._wait_for_load():
                return

        await self._run_load(generation)

    async def _run_load(self, generation: int) -> None:
        """执行加载并记录结果（仅加载方调用）"""
        try:
            await self._load()
        except asyncio.CancelledError:
            with self._lock:
                if self._generation == generation:
                    self._state = LoadState.NOT_STARTED
            logger.info("[LazyLoad] load cancelled, state returned to not_started")
            raise
        except Exception as e:
            with self._lock:
                if self._generation == generation:
                    self._state = LoadState.FAILED
                    self._error = e
            logger.error(f"[LazyLoad] load failed: {e}")
            raise

        with self._lock:
            current = self._generation == generation
            if current:
                self._state = LoadState.LOADED
                self._error = None

        if current:
            logger.info("[LazyLoad] configuration loaded")
            if self._on_loaded is not None:
                self._on_loaded()

    async def _wait_for_load(self) -> bool:
        """等待其他调用方加载完成

        Returns:
            True 表示已加载；False 表示加载方放弃（需要重新竞争加载）

        Raises:
            Exception: 加载方记录的失败异常
        """
        if config.METRICS_ENABLED:
            metrics.inc("lazy_load.waiters")

        while True:
            await asyncio.sleep(self._poll_interval)
            with self._lock:
                state = self._state
                error = self._error

            if state is LoadState.LOADING:
                continue
            if state is LoadState.LOADED:
                return True
            if state is LoadState.FAILED and error is not None:
                raise error
            return False

    def reset(self) -> None:
        """重置为 NOT_STARTED（仅用于受控的重新初始化）

        重置前已经开始的加载完成后不会覆盖重置后的状态。
        """
        with self._lock:
            self._state = LoadState.NOT_STARTED
            self._error = None
            self._generation += 1

        if self._on_reset is not None:
            self._on_reset()
        logger.info("[LazyLoad] load state reset")
