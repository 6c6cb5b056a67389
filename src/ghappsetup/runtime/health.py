"""就绪检查端点"""

from collections.abc import Callable

from fastapi import Request
from fastapi.responses import PlainTextResponse


def make_health_endpoint(is_ready: Callable[[], bool]):
    """构造就绪检查端点

    可直接用于 FastAPI/Starlette 路由：
        app.add_api_route("/healthz", runtime.health_handler())
    """

    async def health(request: Request) -> PlainTextResponse:
        if is_ready():
            return PlainTextResponse("ok", status_code=200)
        return PlainTextResponse("not ready", status_code=503)

    return health
