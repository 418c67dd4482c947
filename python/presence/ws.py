from __future__ import annotations

import logging

from fastapi import WebSocket, WebSocketDisconnect

from presence.game.protocol import decode_message
from presence.game.world import World

logger = logging.getLogger(__name__)


async def handle_ws(ws: WebSocket, world: World) -> None:
    await ws.accept()
    participant_id: str | None = None
    try:
        participant = await world.join(ws)
        participant_id = participant.id

        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            msg = decode_message(raw, world.limits, world.settings.name_max_len)
            if msg is None:
                continue
            await world.handle(participant_id, msg)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("websocket handler failed for %s", participant_id)
    finally:
        if participant_id is not None:
            await world.leave(participant_id)
