"""ghappsetup - GitHub App 安装流程的运行时协调

HTTP 服务使用 start() / handler() / listen_for_reloads()，
Lambda 使用 ensure_loaded() 在每次调用时懒加载配置。
"""

from .configwait import ReadyGate, ReloadSignal, ReloadSource, RetryPolicy, SighupSource
from .runtime import Environment, LazyLoadGuard, LoadState, Runtime, RuntimeConfig
from .store import AppCredentials, CredentialStore, InstallerStatus

__all__ = [
    "Runtime",
    "RuntimeConfig",
    "Environment",
    "RetryPolicy",
    "ReadyGate",
    "ReloadSignal",
    "ReloadSource",
    "SighupSource",
    "LazyLoadGuard",
    "LoadState",
    "CredentialStore",
    "AppCredentials",
    "InstallerStatus",
]
