"""Pytest 配置"""

import asyncio

import pytest

from ghappsetup import config
from ghappsetup.configwait import ReloadSource
from ghappsetup.telemetry import metrics


class FakeSource(ReloadSource):
    """内存触发源，代替真实的 SIGHUP"""

    source_name = "fake"

    def __init__(self):
        self.trigger = None
        self.started = False
        self.stopped = False

    async def start(self, trigger) -> None:
        self.trigger = trigger
        self.started = True

    async def stop(self) -> None:
        self.stopped = True

    def fire(self) -> bool:
        return self.trigger(self.source_name)


async def wait_until(predicate, timeout: float = 2.0) -> None:
    """轮询直到条件成立，超时则失败"""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            pytest.fail("condition not met before timeout")
        await asyncio.sleep(0.01)


@pytest.fixture
def fake_source():
    """创建测试用触发源"""
    return FakeSource()


@pytest.fixture
def until():
    """等待条件成立的辅助函数"""
    return wait_until


@pytest.fixture(autouse=True)
def reset_metrics():
    """每次测试前重置指标"""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def server_env(monkeypatch):
    """HTTP 服务环境（清除所有相关环境变量）"""
    monkeypatch.delenv(config.LAMBDA_ENV_VAR, raising=False)
    monkeypatch.delenv(config.ENV_MAX_RETRIES, raising=False)
    monkeypatch.delenv(config.ENV_RETRY_INTERVAL, raising=False)


@pytest.fixture
def function_env(server_env, monkeypatch):
    """Lambda 环境"""
    monkeypatch.setenv(config.LAMBDA_ENV_VAR, "test-function")
