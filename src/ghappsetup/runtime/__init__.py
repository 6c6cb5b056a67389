"""Runtime module - 配置加载生命周期管理"""

from .environment import Environment, detect_environment
from .lazy import LazyLoadGuard, LoadState
from .runtime import Runtime, RuntimeConfig

__all__ = [
    "Runtime",
    "RuntimeConfig",
    "Environment",
    "detect_environment",
    "LazyLoadGuard",
    "LoadState",
]
