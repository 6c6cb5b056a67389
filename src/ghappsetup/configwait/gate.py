"""ReadyGate - 配置就绪前的 HTTP 门控

ASGI 中间件，在服务就绪前拒绝非白名单路径的请求（503），
就绪后把所有请求转发给当前的内层应用。

路径匹配规则：
- 白名单中的 "/" 只精确匹配根路径
- 其他白名单项按前缀匹配（如 "/setup" 匹配 "/setup/step2"）

热路径只做属性读取，不加锁、不做 IO。
"""

import threading
from collections.abc import Iterable

from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.types import ASGIApp, Receive, Scope, Send

from .. import config
from ..telemetry import get_logger

logger = get_logger(__name__)

MESSAGE_STARTING_UP = "service starting up"
MESSAGE_NOT_READY = "service not ready, configuration loading"


class UnavailableBody(BaseModel):
    """503 响应体"""

    error: str = "service_unavailable"
    message: str


class ReadyGate:
    """就绪门控

    Attributes:
        allowed_paths: 就绪前也放行的路径前缀
    """

    def __init__(self, app: ASGIApp | None = None, allowed_paths: Iterable[str] = ()):
        """初始化 ReadyGate

        Args:
            app: 内层 ASGI 应用，可以稍后通过 set_handler() 设置
            allowed_paths: 始终放行的路径前缀（如 "/healthz", "/setup"）
        """
        self._app = app
        self._allowed_paths = tuple(allowed_paths)
        self._ready = False
        self._handler_set = threading.Event()
        if app is not None:
            self._handler_set.set()

    @property
    def allowed_paths(self) -> tuple[str, ...]:
        return self._allowed_paths

    def set_ready(self) -> None:
        """标记为就绪（单调，重复调用无副作用）"""
        if not self._ready:
            self._ready = True
            logger.info("[ReadyGate] service marked ready")

    def is_ready(self) -> bool:
        """是否已就绪"""
        return self._ready

    def set_handler(self, app: ASGIApp) -> None:
        """替换内层应用

        之后到达的请求立即使用新应用，已在处理中的请求不受影响。
        """
        self._app = app
        self._handler_set.set()

    def has_handler(self) -> bool:
        """是否已设置内层应用"""
        return self._app is not None

    def wait_for_handler(self, timeout: float | None = None) -> bool:
        """阻塞等待内层应用被设置

        Args:
            timeout: 超时时间（秒），None 表示一直等待

        Returns:
            是否已设置
        """
        return self._handler_set.wait(timeout)

    def is_allowed_path(self, path: str) -> bool:
        """检查路径是否命中白名单"""
        for allowed in self._allowed_paths:
            if allowed == "/":
                if path == "/":
                    return True
                continue
            if path.startswith(allowed):
                return True
        return False

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        app = self._app
        path = scope.get("path", "")

        if self.is_allowed_path(path):
            if app is not None:
                await app(scope, receive, send)
                return
            await self._reject(scope, receive, send, MESSAGE_STARTING_UP)
            return

        if not self._ready:
            await self._reject(scope, receive, send, MESSAGE_NOT_READY)
            return

        if app is None:
            await self._reject(scope, receive, send, MESSAGE_STARTING_UP)
            return
        await app(scope, receive, send)

    async def _reject(self, scope: Scope, receive: Receive, send: Send, message: str) -> None:
        """返回 503（websocket 则以 1013 关闭）"""
        logger.debug(f"[ReadyGate] rejected {scope['type']} {scope.get('path', '')}: {message}")

        if scope["type"] == "websocket":
            await send({"type": "websocket.close", "code": config.WEBSOCKET_TRY_AGAIN_CODE})
            return

        response = JSONResponse(
            UnavailableBody(message=message).model_dump(),
            status_code=503,
            headers={"Retry-After": str(config.RETRY_AFTER_SECONDS)},
        )
        await response(scope, receive, send)

    async def _handle_lifespan(self, scope: Scope, receive: Receive, send: Send) -> None:
        """转发 lifespan 事件；没有内层应用时直接确认"""
        app = self._app
        if app is not None:
            await app(scope, receive, send)
            return

        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return
