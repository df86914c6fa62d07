"""
FastAPI middleware that opens a log batch per request and saves it afterwards.
"""

import json
from collections.abc import Callable
from typing import Any
from urllib.parse import parse_qsl

from fastapi import Request, Response
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.logging import get_logger
from .metrics import RuntimeCounters
from .recorder import LogRecorder
from .schemas import RequestContext

logger = get_logger("sink.middleware")


async def read_body_params(request: Request) -> dict[str, Any]:
    """Decode urlencoded or JSON bodies into a parameter mapping."""
    content_type = request.headers.get("content-type", "")
    if request.method in ("GET", "HEAD", "OPTIONS"):
        return {}

    body = await request.body()
    if not body:
        return {}

    if content_type.startswith("application/x-www-form-urlencoded"):
        return dict(parse_qsl(body.decode("utf-8", errors="replace")))
    if content_type.startswith("application/json"):
        try:
            payload = json.loads(body)
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {"body": payload}
    return {}


def build_request_context(
    request: Request, app_name: str, post: dict[str, Any]
) -> RequestContext:
    """Snapshot the request once routing has resolved the endpoint."""
    endpoint = request.scope.get("endpoint")
    controller = ""
    action = ""
    if endpoint is not None:
        controller = getattr(endpoint, "__module__", "").rsplit(".", 1)[-1]
        action = getattr(endpoint, "__name__", "")

    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"

    return RequestContext(
        ip=request.client.host if request.client else "unknown",
        method=request.method,
        host=request.headers.get("host", request.url.netloc),
        url=url,
        app=app_name,
        controller=controller,
        action=action,
        get=dict(request.query_params),
        post=post,
    )


class LogSinkMiddleware(BaseHTTPMiddleware):
    """Collects a log batch for each request and hands it to the sink."""

    def __init__(
        self,
        app,
        recorder: LogRecorder,
        app_name: str,
        append: bool = False,
    ):
        super().__init__(app)
        self.recorder = recorder
        self.app_name = app_name
        self.append = append

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        counters = RuntimeCounters.capture()
        token = self.recorder.begin()
        post = await read_body_params(request)

        try:
            response = await call_next(request)
        except Exception as e:
            self.recorder.record("error", f"{type(e).__name__}: {e}")
            await self._flush(request, token, post, counters)
            raise

        await self._flush(request, token, post, counters)
        return response

    async def _flush(self, request, token, post, counters) -> None:
        entries = self.recorder.end(token)
        if not entries:
            return
        context = build_request_context(request, self.app_name, post)
        written, outcome = await run_in_threadpool(
            self.recorder.sink.save_with_outcome,
            entries,
            self.append,
            context,
            counters,
        )
        if not written:
            logger.warning(f"Log batch for {context.url} was not written")
        logger.debug(
            f"Slow log for {context.url}: {outcome.status.value}",
            extra={"reason": outcome.reason},
        )
