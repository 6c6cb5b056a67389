"""演示服务 - 使用 Runtime 管理配置生命周期的 GitHub App webhook 服务

启动流程：
1. 创建 Runtime（/healthz 始终放行）
2. uvicorn 立即开始监听，门控在配置加载前返回 503
3. 后台加载配置，成功后开始监听 SIGHUP 重载
"""

import asyncio
import os

import uvicorn
from fastapi import FastAPI

from . import config
from .runtime import Runtime, RuntimeConfig
from .store import ENV_GITHUB_APP_ID, ENV_GITHUB_WEBHOOK_SECRET
from .telemetry import get_logger, setup_logging

logger = get_logger(__name__)


def load_config() -> None:
    """从环境变量加载 GitHub App 配置

    Raises:
        RuntimeError: 必需的环境变量未设置
    """
    if not os.environ.get(ENV_GITHUB_WEBHOOK_SECRET):
        raise RuntimeError(f"{ENV_GITHUB_WEBHOOK_SECRET} is not set")

    app_id = os.environ.get(ENV_GITHUB_APP_ID)
    if not app_id:
        raise RuntimeError(f"{ENV_GITHUB_APP_ID} is not set")

    logger.info(f"[Server] loaded GitHub App configuration (app_id={app_id})")


def create_app(runtime: Runtime) -> FastAPI:
    """创建 FastAPI 应用"""
    app = FastAPI(title="ghappsetup")
    app.add_api_route(config.HEALTH_PATH, runtime.health_handler(), methods=["GET"])

    @app.get("/")
    async def index():
        return {
            "status": "ok",
            "environment": runtime.environment.value,
            "ready": runtime.is_ready(),
        }

    return app


async def start_server(runtime: Runtime | None = None) -> None:
    """启动服务器"""
    if runtime is None:
        runtime = Runtime(RuntimeConfig(load_func=load_config, allowed_paths=[config.HEALTH_PATH]))

    asgi_app = runtime.handler(create_app(runtime))
    uvicorn_config = uvicorn.Config(asgi_app, host=config.HOST, port=config.PORT, log_level="info")
    uvicorn_server = uvicorn.Server(uvicorn_config)

    async def load_then_listen() -> None:
        await runtime.start()
        logger.info("[Server] configuration reloader started (send SIGHUP to reload)")
        await runtime.listen_for_reloads()

    lifecycle_task = asyncio.create_task(load_then_listen())
    serve_task = asyncio.create_task(uvicorn_server.serve())

    logger.info(f"[Server] starting at http://{config.HOST}:{config.PORT}")

    try:
        done, _ = await asyncio.wait(
            {lifecycle_task, serve_task}, return_when=asyncio.FIRST_COMPLETED
        )
        if lifecycle_task in done and not lifecycle_task.cancelled():
            error = lifecycle_task.exception()
            if error is not None:
                logger.error(f"[Server] failed to load configuration after retries: {error}")
                uvicorn_server.should_exit = True
                await serve_task
                raise error
        await serve_task
    finally:
        lifecycle_task.cancel()
        serve_task.cancel()


def main():
    """入口函数"""
    setup_logging()
    try:
        asyncio.run(start_server())
    except KeyboardInterrupt:
        print("\nServer stopped")


if __name__ == "__main__":
    main()
