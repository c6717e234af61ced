"""HTTP middleware."""

import asyncio
import logging

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from statuspage.api.errors import error_body

logger = logging.getLogger(__name__)


class RequestTimeoutMiddleware:
    """Bound the handling time of each HTTP request.

    A request that has not finished its response after ``timeout`` seconds
    is cancelled, which also cancels its pending database call and rolls
    back its session, and the client receives a 504.

    The deadline stops at the last body chunk. Background tasks that the
    application runs after the response (subscriber notifications) are
    not subject to it.
    """

    def __init__(self, app: ASGIApp, timeout: float = 60.0) -> None:
        self.app = app
        self.timeout = timeout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or self.timeout <= 0:
            await self.app(scope, receive, send)
            return

        response_started = False
        response_complete = asyncio.Event()

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)
            if message["type"] == "http.response.body" and not message.get("more_body", False):
                response_complete.set()

        app_task = asyncio.ensure_future(self.app(scope, receive, send_wrapper))
        complete_task = asyncio.ensure_future(response_complete.wait())
        try:
            done, _ = await asyncio.wait(
                {app_task, complete_task},
                timeout=self.timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            app_task.cancel()
            raise
        finally:
            complete_task.cancel()

        if done:
            # Response is out or the app returned; background work runs to completion
            await app_task
            return

        app_task.cancel()
        try:
            await app_task
        except asyncio.CancelledError:
            pass

        logger.warning(
            "Request timed out",
            extra={"path": scope.get("path"), "timeout": self.timeout},
        )
        if response_started:
            # Headers are already out; the client sees a truncated body
            return
        response = JSONResponse(
            status_code=504,
            content=error_body("timeout", "request timed out"),
        )
        await response(scope, receive, send)
