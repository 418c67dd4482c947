from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, StreamingResponse
from fastapi.staticfiles import StaticFiles

from presence.config import Settings, settings as default_settings
from presence.game.world import World
from presence.reload import ReloadNotifier
from presence.ws import handle_ws

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings
    world = World(settings=settings)
    public_dir = Path(settings.public_dir)
    has_public = public_dir.is_dir()
    notifier = ReloadNotifier(directory=str(public_dir)) if settings.live_reload and has_public else None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await world.start()
        if notifier is not None:
            await notifier.start()
        yield
        if notifier is not None:
            await notifier.close()
        await world.close()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.world = world
    app.state.notifier = notifier

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allow_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict[str, object]:
        return {"status": "ok", "players": len(world.participants)}

    @app.get("/events")
    async def events():
        if notifier is None:
            return PlainTextResponse("Not Found", status_code=404)
        return StreamingResponse(
            notifier.stream(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Access-Control-Allow-Origin": "*"},
        )

    @app.websocket(settings.ws_path)
    async def ws_endpoint(ws: WebSocket) -> None:
        await handle_ws(ws, world)

    # mounted last so the routes above take precedence
    if has_public:
        app.mount("/", StaticFiles(directory=str(public_dir), html=True), name="public")
    else:
        logger.warning("public directory %s not found, static files disabled", public_dir)

    return app


app = create_app()


def run() -> None:
    logging.basicConfig(
        level=default_settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("server running at http://localhost:%d", default_settings.port)
    uvicorn.run(app, host=default_settings.host, port=default_settings.port, log_level=default_settings.log_level.lower())
