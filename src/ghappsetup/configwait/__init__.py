"""configwait 模块

启动期等待配置可用的工具：
- RetryPolicy / wait: 有界重试加载
- ReadyGate: 就绪前的 HTTP 门控
- ReloadSignal: 合并式重载触发器
- ReloadSource / SighupSource: 重载触发源
"""

from .gate import ReadyGate
from .policy import RetryPolicy, parse_duration
from .reload import ReloadSignal
from .retry import LoadFunc, wait
from .sources import ReloadSource, SighupSource

__all__ = [
    # Retry
    "RetryPolicy",
    "parse_duration",
    "LoadFunc",
    "wait",
    # Gate
    "ReadyGate",
    # Reload
    "ReloadSignal",
    "ReloadSource",
    "SighupSource",
]
