# -----------------------------
# app.py
# -----------------------------
from __future__ import annotations
import json, logging
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, WebSocket
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from config import Settings, load_settings
from events import Effects
from ratelimit import LoopScheduler
from sanitize import Sanitizer, build_sanitizer
from session import SessionController
from utils import configure_logging, new_connection_id

logger = logging.getLogger(__name__)

WS_CLOSE_TOO_BIG = 1009


class Transport:
    """Live sockets by connection id; delivers effects fire-and-forget."""

    def __init__(self):
        self._sockets: Dict[str, WebSocket] = {}

    def attach(self, conn_id: str, ws: WebSocket) -> None:
        self._sockets[conn_id] = ws

    def detach(self, conn_id: str) -> None:
        self._sockets.pop(conn_id, None)

    async def notify(self, conn_id: str, event: Dict[str, Any]) -> None:
        ws = self._sockets.get(conn_id)
        if ws is None:
            return
        try:
            await ws.send_json(event)
        except Exception as e:
            logger.warning("Send to %s failed: %s", conn_id, e)

    async def deliver(self, effects: Effects) -> None:
        for effect in effects:
            await self.notify(effect.recipient, effect.to_wire())


def parse_frame(raw: str) -> Optional[Dict[str, Any]]:
    """Decode one inbound frame; None unless it is a JSON object with a string "type"."""
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        return None
    return data


def create_app(settings: Optional[Settings] = None, sanitize: Optional[Sanitizer] = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    controller = SessionController(
        LoopScheduler(),
        sanitize=sanitize if sanitize is not None else build_sanitizer(settings.sanitize_enabled),
        rate_limit=settings.message_rate_limit,
        rate_window_ms=settings.message_rate_window_ms,
        max_message_length=settings.max_message_length,
    )
    transport = Transport()

    app = FastAPI()
    app.state.settings = settings
    app.state.controller = controller
    app.state.transport = transport

    # HTTP throttling for the page and health endpoints (not chat messages)
    app.state.limiter = Limiter(key_func=get_remote_address, default_limits=[settings.http_rate_limit])
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    @app.get("/")
    def root():
        index = static_dir / "index.html"
        if not index.is_file():
            return JSONResponse({"ok": False, "error": "not_found"}, status_code=404)
        with open(index, "r", encoding="utf-8") as f:
            return HTMLResponse(f.read())

    @app.get("/health")
    def health():
        return {"ok": True, **controller.stats()}

    # -------------- WebSocket: anonymous 1:1 chat --------------
    @app.websocket("/ws")
    async def ws_chat(ws: WebSocket):
        await ws.accept()
        conn_id = new_connection_id()
        transport.attach(conn_id, ws)
        await transport.deliver(controller.connect(conn_id))
        try:
            while True:
                message = await ws.receive()
                if message["type"] == "websocket.disconnect":
                    break
                raw = message.get("text")
                if raw is None:
                    continue  # binary frames are not part of the protocol
                if len(raw.encode("utf-8")) > settings.max_payload_bytes:
                    logger.info("Closing %s: frame exceeds %d bytes", conn_id, settings.max_payload_bytes)
                    await ws.close(code=WS_CLOSE_TOO_BIG)
                    break
                frame = parse_frame(raw)
                if frame is None:
                    logger.debug("Dropped malformed frame from %s", conn_id)
                    continue
                # dispatch mutates state synchronously; only delivery awaits
                await transport.deliver(controller.dispatch(conn_id, frame["type"], frame))
        finally:
            transport.detach(conn_id)
            await transport.deliver(controller.disconnect(conn_id))

    return app


app = create_app()


def main() -> None:
    import uvicorn

    settings: Settings = app.state.settings
    logger.info("Chat server listening on http://%s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
