"""Telemetry - 日志和指标

日志: 库代码只通过 get_logger() 取 logger，消息以 [component] 开头；
      只有入口程序调用 setup_logging() 配置 handler。
指标: 进程内计数器 / gauge，key 形如 load.attempts{loader=Runtime}。
      常用指标: load.attempts, load.failures, reload.coalesced, runtime.ready
"""

import logging
import threading
from collections import Counter

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# uvicorn 的访问日志在健康检查轮询下过于嘈杂
_NOISY_LOGGERS = ("uvicorn.access",)


def get_logger(name: str) -> logging.Logger:
    """按模块名获取 logger（通常传 __name__）"""
    return logging.getLogger(name)


def setup_logging(level: str | None = None) -> None:
    """配置根 logger

    Args:
        level: 日志级别名，None 使用 config.LOG_LEVEL
    """
    from . import config

    resolved = (level or config.LOG_LEVEL).upper()
    logging.basicConfig(level=resolved, format=_LOG_FORMAT)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def metric_key(name: str, labels: dict[str, str] | None = None) -> str:
    """指标 key：标签按名字排序拼接"""
    if not labels:
        return name
    rendered = ",".join(f"{k}={labels[k]}" for k in sorted(labels))
    return f"{name}{{{rendered}}}"


class Metrics:
    """内存指标存储

    计数器可能在信号回调线程和事件循环中同时递增，所有写操作持锁。
    读操作用于测试和调试，不持锁。
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._counters: Counter[str] = Counter()
        self._gauges: dict[str, float] = {}

    def inc(self, name: str, labels: dict[str, str] | None = None, value: int = 1) -> None:
        """计数器 +value

        Args:
            name: 指标名，如 "reload.triggered"
            labels: 标签，如 {"reason": "sighup"}
            value: 增量
        """
        key = metric_key(name, labels)
        with self._lock:
            self._counters[key] += value

    def gauge(self, name: str, value: float, labels: dict[str, str] | None = None) -> None:
        """设置 gauge"""
        key = metric_key(name, labels)
        with self._lock:
            self._gauges[key] = value

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> int:
        return self._counters.get(metric_key(name, labels), 0)

    def get_gauge(self, name: str, labels: dict[str, str] | None = None) -> float:
        return self._gauges.get(metric_key(name, labels), 0.0)

    def snapshot(self) -> dict[str, dict]:
        """导出当前所有指标的副本"""
        with self._lock:
            return {"counters": dict(self._counters), "gauges": dict(self._gauges)}

    def reset(self) -> None:
        """清空（测试用）"""
        with self._lock:
            self._counters.clear()
            self._gauges.clear()


metrics = Metrics()
