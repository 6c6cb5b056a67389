"""Runtime - GitHub App 配置生命周期的统一入口

组合 ReadyGate / 重试加载 / ReloadSignal / LazyLoadGuard，
并根据运行环境（HTTP 服务 vs Lambda）选择默认重试策略。

HTTP 服务：
    runtime = Runtime(RuntimeConfig(load_func=load, allowed_paths=["/healthz"]))
    app = runtime.handler(fastapi_app)   # 交给 uvicorn
    await runtime.start()                # 或 runtime.start_async()
    runtime.listen_for_reloads()         # SIGHUP / reload_callback 触发重载

Lambda：
    await runtime.ensure_loaded()        # 每次调用开头执行，只会真正加载一次
"""

import asyncio
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from starlette.types import ASGIApp

from .. import config
from ..configwait.gate import ReadyGate
from ..configwait.policy import RetryPolicy, env_interval, env_max_attempts
from ..configwait.reload import ReloadSignal
from ..configwait.retry import LoadFunc, call_load, wait
from ..configwait.sources import ReloadSource, SighupSource
from ..store import CredentialStore
from ..telemetry import get_logger, metrics
from .environment import Environment, detect_environment
from .health import make_health_endpoint
from .lazy import LazyLoadGuard, LoadState

logger = get_logger(__name__)


@dataclass
class RuntimeConfig:
    """Runtime 配置

    Attributes:
        load_func: 加载应用配置的函数（必填），失败时抛出异常以触发重试
        store: 凭据存储；为 None 时尝试 store_factory
        store_factory: 构造凭据存储的工厂（外部存储后端提供）
        allowed_paths: 配置加载前也放行的路径前缀（仅 HTTP 环境）
        max_attempts: 最大尝试次数，None 使用环境变量或环境默认值
        retry_interval: 重试间隔（秒），None 使用环境变量或环境默认值
    """

    load_func: LoadFunc | None = None
    store: CredentialStore | None = None
    store_factory: Callable[[], CredentialStore] | None = None
    allowed_paths: list[str] = field(default_factory=list)
    max_attempts: int | None = None
    retry_interval: float | None = None


def resolve_policy(cfg: RuntimeConfig, env: Environment) -> RetryPolicy:
    """按 显式配置 > 环境变量 > 环境默认值 的顺序确定重试策略

    Raises:
        ValueError: 显式配置的值无效
    """
    default = RetryPolicy.function_default() if env.is_function else RetryPolicy.server_default()

    max_attempts = cfg.max_attempts
    if max_attempts is None:
        max_attempts = env_max_attempts() or default.max_attempts

    interval = cfg.retry_interval
    if interval is None:
        interval = env_interval() or default.interval

    return RetryPolicy(max_attempts=max_attempts, interval=interval)


class Runtime:
    """配置加载、就绪门控和热重载的协调者"""

    def __init__(self, cfg: RuntimeConfig):
        """创建 Runtime

        Args:
            cfg: Runtime 配置

        Raises:
            ValueError: 缺少 load_func 或重试参数无效
            RuntimeError: store_factory 构造存储失败
        """
        if cfg.load_func is None:
            raise ValueError("ghappsetup: load_func is required")

        self._config = cfg
        self._load_func: LoadFunc = cfg.load_func
        self._env = detect_environment()
        self._policy = resolve_policy(cfg, self._env)
        self._store = self._build_store(cfg)

        # 只有 HTTP 环境需要门控
        self._gate: ReadyGate | None = None
        if self._env is Environment.SERVER:
            self._gate = ReadyGate(None, cfg.allowed_paths)

        self._ready_lock = threading.Lock()
        self._ready = False
        self._reload_signal = ReloadSignal()
        self._lazy = LazyLoadGuard(
            load=self._load_with_retry,
            on_loaded=lambda: self._set_ready(True),
            on_reset=lambda: self._set_ready(False),
        )

        logger.info(
            f"[Runtime] environment={self._env.value} "
            f"max_attempts={self._policy.max_attempts} interval={self._policy.interval}s"
        )

    @staticmethod
    def _build_store(cfg: RuntimeConfig) -> CredentialStore | None:
        if cfg.store is not None:
            return cfg.store
        if cfg.store_factory is None:
            return None
        try:
            return cfg.store_factory()
        except Exception as e:
            raise RuntimeError(f"ghappsetup: failed to create store: {e}") from e

    # === 只读访问 ===

    @property
    def store(self) -> CredentialStore | None:
        """凭据存储（手动接入 installer 时使用）"""
        return self._store

    @property
    def environment(self) -> Environment:
        """检测到的运行环境"""
        return self._env

    @property
    def policy(self) -> RetryPolicy:
        """生效的重试策略"""
        return self._policy

    @property
    def gate(self) -> ReadyGate | None:
        """HTTP 门控（Lambda 环境为 None）"""
        return self._gate

    @property
    def load_state(self) -> LoadState:
        """懒加载状态"""
        return self._lazy.state

    def is_ready(self) -> bool:
        """配置是否已成功加载"""
        return self._ready

    def _set_ready(self, ready: bool) -> None:
        """设置就绪标志，并在就绪时打开门控"""
        with self._ready_lock:
            self._ready = ready
        if config.METRICS_ENABLED:
            metrics.gauge("runtime.ready", 1.0 if ready else 0.0)
        if ready and self._gate is not None:
            self._gate.set_ready()

    # === HTTP 服务 ===

    async def start(self) -> None:
        """阻塞直到配置加载成功，然后标记就绪

        Raises:
            Exception: 所有重试失败后的最后一个异常（就绪标志保持 False）
            asyncio.CancelledError: 任务被取消
        """
        await self._load_with_retry()
        self._set_ready(True)
        logger.info("[Runtime] configuration loaded, service is ready")

    def start_async(self) -> asyncio.Task:
        """在后台加载配置，立即返回

        Returns:
            后台任务；成功时结果为 None，失败时 await 该任务会抛出最后一次的加载异常
        """
        return asyncio.create_task(self.start(), name="ghappsetup-start")

    def handler(self, inner: ASGIApp) -> ASGIApp:
        """用 ReadyGate 包装内层应用

        Lambda 环境没有门控，直接返回 inner。
        """
        if self._gate is None:
            return inner
        self._gate.set_handler(inner)
        return self._gate

    def health_handler(self):
        """就绪检查端点：就绪返回 200 "ok"，否则 503 "not ready" """
        return make_health_endpoint(self.is_ready)

    # === Lambda ===

    async def ensure_loaded(self) -> None:
        """懒加载配置（幂等，可并发调用）

        Raises:
            Exception: 加载失败
            asyncio.CancelledError: 当前调用被取消
        """
        await self._lazy.ensure_loaded()

    def reset_load_state(self) -> None:
        """重置懒加载状态和就绪标志（主要用于测试）"""
        self._lazy.reset()

    # === 重载 ===

    async def reload(self) -> None:
        """直接调用一次 load_func（异常向上传播）"""
        await call_load(self._load_func)

    def reload_callback(self) -> Callable[[], None]:
        """返回触发异步重载的回调（交给 installer 在保存凭据后调用）"""

        def trigger() -> None:
            self._reload_signal.trigger("callback")

        return trigger

    def listen_for_reloads(self, sources: Iterable[ReloadSource] | None = None) -> asyncio.Task:
        """监听重载触发（SIGHUP 和 reload_callback）

        Args:
            sources: 触发源，None 使用 SIGHUP

        Returns:
            后台任务；取消即停止监听并释放信号处理器
        """
        if sources is None:
            sources = [SighupSource()]
        return self._reload_signal.start(self._load_func, sources)

    async def _load_with_retry(self) -> None:
        await wait(self._policy, self._load_func, name="Runtime")
