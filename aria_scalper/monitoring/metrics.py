"""HTTP metrics and dashboard endpoints (JSON)."""

from __future__ import annotations

import dataclasses
import enum
import logging
import socket
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route

from aria_scalper.learning.lessons import Lesson
from aria_scalper.learning.policy import LearningPolicy

_log = logging.getLogger(__name__)

_ROOT_TEXT = "ARIA metrics — see /metrics, /lessons, /survival, /dashboard, /healthz"


@dataclass
class MetricsSnapshot:
    mode: str = ""
    equity: float = 0.0
    peak_equity: float = 0.0
    open_positions: int = 0
    daily_pnl: float = 0.0
    trades_today: int = 0
    signals_today: int = 0
    llm_go: int = 0
    llm_nogo: int = 0
    llm_wait: int = 0
    llm_avg_confidence: float = 0.0
    llm_avg_latency_ms: int = 0
    llm_offline_fallbacks: int = 0
    active_lessons: int = 0
    last_update_ts: int = 0

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


class MetricsState:
    """Thread-safe holder of the current metrics snapshot."""

    def __init__(self, mode: str) -> None:
        self._lock = threading.Lock()
        self._inner = MetricsSnapshot(mode=mode)

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            return dataclasses.replace(self._inner)

    def update(self, func: Callable[[MetricsSnapshot], None]) -> None:
        """Mutate the snapshot in place and stamp the update time."""
        with self._lock:
            func(self._inner)
            self._inner.last_update_ts = int(time.time())


@dataclass
class DashboardState:
    """What the dashboard serves; `survival` may be replaced at any time."""

    metrics: MetricsState
    policy: LearningPolicy | None = None
    survival: Any = None


def _plain(value: Any) -> Any:
    if isinstance(value, Lesson):
        return value.to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def _lessons(state: DashboardState) -> list[dict[str, Any]]:
    if state.policy is None:
        return []
    return [lesson.to_dict() for lesson in state.policy.active_lessons()]


def create_dashboard_app(state: DashboardState) -> Starlette:
    """Build the ASGI app serving metrics, lessons, survival state and health."""

    async def root(request: Request) -> Response:
        return PlainTextResponse(_ROOT_TEXT)

    async def healthz(request: Request) -> Response:
        return PlainTextResponse("ok")

    async def metrics(request: Request) -> Response:
        return JSONResponse(state.metrics.snapshot().to_dict())

    async def lessons(request: Request) -> Response:
        return JSONResponse(_lessons(state))

    async def survival(request: Request) -> Response:
        current = state.survival
        if current is None:
            return PlainTextResponse("survival state not yet computed", status_code=404)
        return JSONResponse(_plain(current))

    async def dashboard(request: Request) -> Response:
        current = state.survival
        return JSONResponse(
            {
                "metrics": state.metrics.snapshot().to_dict(),
                "lessons": _lessons(state),
                "survival": None if current is None else _plain(current),
            }
        )

    return Starlette(
        routes=[
            Route("/", root),
            Route("/healthz", healthz),
            Route("/metrics", metrics),
            Route("/lessons", lessons),
            Route("/survival", survival),
            Route("/dashboard", dashboard),
        ]
    )


async def serve_dashboard(state: DashboardState, host: str, port: int) -> None:
    """Serve the dashboard until cancelled; a bind failure is logged, not raised."""
    app = create_dashboard_app(state)
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError as exc:
        sock.close()
        _log.error("cannot bind metrics server on %s:%s: %s", host, port, exc)
        return
    sock.set_inheritable(True)
    _log.info("metrics server listening on %s:%s", host, port)
    server = uvicorn.Server(uvicorn.Config(app, log_level="warning"))
    try:
        await server.serve(sockets=[sock])
    except Exception as exc:
        _log.error("metrics server: %s", exc)
    finally:
        sock.close()