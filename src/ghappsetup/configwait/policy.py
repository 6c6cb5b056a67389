"""RetryPolicy - 配置加载的重试策略

重试策略是一个不可变的值对象：
- max_attempts: 最大尝试次数（>= 1）
- interval: 两次尝试之间的等待时间（秒，>= 0）

环境变量覆盖（CONFIG_WAIT_MAX_RETRIES / CONFIG_WAIT_RETRY_INTERVAL）
无效值会被忽略，保留默认值。
"""

import math
import os
import re
from dataclasses import dataclass

from .. import config
from ..telemetry import get_logger

logger = get_logger(__name__)

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: str) -> float:
    """解析时长字符串为秒数

    支持 Go 风格的时长（"500ms", "2s", "1m30s"）和纯数字秒数（"2.5"）。

    Args:
        value: 时长字符串

    Returns:
        秒数

    Raises:
        ValueError: 格式无法识别
    """
    text = value.strip().lower()
    if not text:
        raise ValueError("empty duration")

    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds):
            raise ValueError(f"invalid duration: {value!r}")
        return seconds

    total = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()

    if pos == 0 or pos != len(text):
        raise ValueError(f"invalid duration: {value!r}")
    return total


@dataclass(frozen=True)
class RetryPolicy:
    """重试策略

    Attributes:
        max_attempts: 最大尝试次数，至少 1
        interval: 重试间隔（秒），不能为负
    """

    max_attempts: int
    interval: float

    def __post_init__(self):
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int):
            raise ValueError(f"max_attempts must be an int, got {self.max_attempts!r}")
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if not math.isfinite(self.interval) or self.interval < 0:
            raise ValueError(f"interval must be >= 0, got {self.interval}")

    @classmethod
    def server_default(cls) -> "RetryPolicy":
        """HTTP 服务默认策略：更多次数、更长间隔"""
        return cls(config.SERVER_MAX_ATTEMPTS, config.SERVER_RETRY_INTERVAL)

    @classmethod
    def function_default(cls) -> "RetryPolicy":
        """Lambda 默认策略：更少次数、更短间隔"""
        return cls(config.FUNCTION_MAX_ATTEMPTS, config.FUNCTION_RETRY_INTERVAL)

    @classmethod
    def from_env(cls, default: "RetryPolicy | None" = None) -> "RetryPolicy":
        """从环境变量构造策略

        Args:
            default: 基础策略，None 使用 HTTP 服务默认值

        Returns:
            合并环境变量覆盖后的策略
        """
        base = default or cls.server_default()
        return cls(
            max_attempts=env_max_attempts() or base.max_attempts,
            interval=env_interval() or base.interval,
        )


def env_max_attempts() -> int | None:
    """读取 CONFIG_WAIT_MAX_RETRIES，无效或未设置返回 None"""
    raw = os.environ.get(config.ENV_MAX_RETRIES, "")
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"[configwait] ignoring invalid {config.ENV_MAX_RETRIES}={raw!r}")
        return None
    if value <= 0:
        logger.warning(f"[configwait] ignoring non-positive {config.ENV_MAX_RETRIES}={raw!r}")
        return None
    return value


def env_interval() -> float | None:
    """读取 CONFIG_WAIT_RETRY_INTERVAL，无效或未设置返回 None"""
    raw = os.environ.get(config.ENV_RETRY_INTERVAL, "")
    if not raw:
        return None
    try:
        value = parse_duration(raw)
    except ValueError:
        logger.warning(f"[configwait] ignoring invalid {config.ENV_RETRY_INTERVAL}={raw!r}")
        return None
    if value <= 0:
        logger.warning(f"[configwait] ignoring non-positive {config.ENV_RETRY_INTERVAL}={raw!r}")
        return None
    return value
