"""有界重试执行器

以固定间隔重复执行可能失败的加载操作，直到成功或次数耗尽。
HTTP 服务启动（Runtime.start）和 Lambda 懒加载（Runtime.ensure_loaded）
共用同一个实现。

语义：
- 成功立即返回；第 k (>1) 次成功记录 INFO 日志
- 最后一次失败的异常原样抛出（不包装），方便调用方匹配哨兵异常
- 等待间隔可被任务取消打断，取消时抛出 asyncio.CancelledError
  而不是上一次的加载异常
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable

from .. import config
from ..telemetry import get_logger, metrics
from .policy import RetryPolicy

logger = get_logger(__name__)

# 加载函数：同步或异步，失败时抛出异常
LoadFunc = Callable[[], Awaitable[None] | None]


async def call_load(load: LoadFunc) -> None:
    """执行一次加载（兼容同步/异步函数）"""
    result = load()
    if inspect.isawaitable(result):
        await result


async def wait(policy: RetryPolicy, load: LoadFunc, name: str = "configwait") -> None:
    """阻塞直到 load 成功或达到最大尝试次数

    Args:
        policy: 重试策略
        load: 加载函数
        name: 日志前缀

    Raises:
        Exception: 所有尝试失败时，最后一次的异常（原样）
        asyncio.CancelledError: 等待期间任务被取消
    """
    for attempt in range(1, policy.max_attempts + 1):
        if config.METRICS_ENABLED:
            metrics.inc("load.attempts", {"loader": name})
        try:
            await call_load(load)
        except Exception as e:
            if config.METRICS_ENABLED:
                metrics.inc("load.failures", {"loader": name})
            logger.warning(f"[{name}] attempt {attempt}/{policy.max_attempts} failed: {e}")

            if attempt >= policy.max_attempts:
                raise
            await asyncio.sleep(policy.interval)
            continue

        if attempt > 1:
            logger.info(f"[{name}] configuration loaded successfully after {attempt} attempts")
        if config.METRICS_ENABLED:
            metrics.inc("load.success", {"loader": name})
        return
