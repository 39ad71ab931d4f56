from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute

from broker.messaging.router import MessageRouter
from broker.server.settings import BrokerServerSettings
from broker.server.websocket import websocket_endpoint
from broker.session.broker import SessionBroker
from broker.session.codes import generate_invite_code, generate_room_id
from shared.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.websockets import WebSocket


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def status(request: Request) -> JSONResponse:
    broker: SessionBroker = request.app.state.broker
    return JSONResponse(
        {
            "status": "ok",
            "rooms": broker.room_count,
            "open_rooms": len(broker.get_rooms_info()),
            "connections": broker.connection_count,
            "max_rooms": broker.max_rooms,
        },
    )


async def list_rooms(request: Request) -> JSONResponse:
    broker: SessionBroker = request.app.state.broker
    rooms = broker.get_rooms_info()
    return JSONResponse({"rooms": [r.model_dump(by_alias=True) for r in rooms]})


def create_app(
    settings: BrokerServerSettings | None = None,
    broker: SessionBroker | None = None,
    message_router: MessageRouter | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = BrokerServerSettings()

    if broker is None:
        broker = SessionBroker(
            max_rooms=settings.max_rooms,
            room_id_factory=partial(generate_room_id, settings.room_id_length),
            invite_code_factory=partial(generate_invite_code, settings.invite_code_length),
        )

    if message_router is None:
        message_router = MessageRouter(broker)

    async def ws_endpoint(websocket: WebSocket) -> None:
        await websocket_endpoint(websocket, message_router)

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/status", status, methods=["GET"]),
        Route("/rooms", list_rooms, methods=["GET"]),
        WebSocketRoute("/ws", ws_endpoint),
    ]

    app = Starlette(routes=routes)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.broker = broker

    logger.info("broker server ready", max_rooms=settings.max_rooms)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (e.g., uvicorn --factory)."""
    settings = BrokerServerSettings()
    setup_logging(log_dir=settings.log_dir)
    return create_app(settings=settings)
