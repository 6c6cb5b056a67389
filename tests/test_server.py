"""演示服务测试"""

from unittest.mock import patch

import httpx
import pytest

from ghappsetup import config
from ghappsetup.runtime import Runtime, RuntimeConfig
from ghappsetup.server import create_app, load_config


class TestLoadConfig:
    """load_config 测试"""

    def test_missing_webhook_secret(self):
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(RuntimeError, match="GITHUB_WEBHOOK_SECRET"):
                load_config()

    def test_missing_app_id(self):
        with patch.dict("os.environ", {"GITHUB_WEBHOOK_SECRET": "s"}, clear=True):
            with pytest.raises(RuntimeError, match="GITHUB_APP_ID"):
                load_config()

    def test_all_present(self):
        env = {"GITHUB_WEBHOOK_SECRET": "s", "GITHUB_APP_ID": "42"}
        with patch.dict("os.environ", env, clear=True):
            load_config()


class TestCreateApp:
    """create_app + Runtime 集成"""

    async def test_status_gated_until_loaded(self, server_env, monkeypatch):
        monkeypatch.delenv("GITHUB_WEBHOOK_SECRET", raising=False)
        monkeypatch.setenv("GITHUB_APP_ID", "42")
        runtime = Runtime(
            RuntimeConfig(
                load_func=load_config,
                allowed_paths=[config.HEALTH_PATH],
                max_attempts=1,
            )
        )
        app = runtime.handler(create_app(runtime))

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            assert (await client.get("/")).status_code == 503
            assert (await client.get(config.HEALTH_PATH)).status_code == 503

            with pytest.raises(RuntimeError):
                await runtime.start()

            monkeypatch.setenv("GITHUB_WEBHOOK_SECRET", "s")
            await runtime.start()

            health = await client.get(config.HEALTH_PATH)
            index = await client.get("/")

        assert health.status_code == 200
        assert health.text == "ok"
        assert index.json() == {"status": "ok", "environment": "server", "ready": True}
