from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from presence.config import Settings, settings as default_settings
from presence.game.constraints import MotionLimits, WorldBounds
from presence.game.input_store import InputStore
from presence.game.protocol import (
    ClientMessage,
    IdentifyMessage,
    InputMessage,
    ResetMessage,
    encode_state,
    encode_welcome,
)
from presence.game.registry import ParticipantRegistry
from presence.game.simulation import simulate
from presence.game.types import Participant

logger = logging.getLogger(__name__)


def _is_open(ws: WebSocket) -> bool:
    return ws.client_state == WebSocketState.CONNECTED and ws.application_state == WebSocketState.CONNECTED


@dataclass(slots=True)
class Outbox:
    """Per-connection send queue drained by its own task; keeps only the newest payloads."""

    participant_id: str
    ws: WebSocket
    queue: asyncio.Queue[str]
    task: asyncio.Task[None] | None = None
    dropped: int = 0

    @staticmethod
    def open(participant_id: str, ws: WebSocket, size: int) -> "Outbox":
        outbox = Outbox(participant_id=participant_id, ws=ws, queue=asyncio.Queue(maxsize=max(1, size)))
        outbox.task = asyncio.create_task(outbox._drain())
        return outbox

    def push(self, payload: str) -> None:
        if self.queue.full():
            # stale snapshots are worthless once a newer one exists
            self.queue.get_nowait()
            self.dropped += 1
        self.queue.put_nowait(payload)

    def close(self) -> None:
        if self.task is not None:
            self.task.cancel()
            self.task = None

    async def _drain(self) -> None:
        while True:
            payload = await self.queue.get()
            if not _is_open(self.ws):
                continue
            try:
                await self.ws.send_text(payload)
            except Exception:
                # the connection handler deregisters on close
                logger.debug("state send to %s failed", self.participant_id, exc_info=True)
                return


@dataclass(slots=True)
class World:
    settings: Settings = default_settings
    limits: MotionLimits = field(init=False)
    bounds: WorldBounds = field(init=False)
    participants: ParticipantRegistry = field(init=False)
    inputs: InputStore = field(init=False)
    _connections: dict[str, Outbox] = field(default_factory=dict)
    _tick_task: asyncio.Task[None] | None = None
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    _closed: bool = False

    def __post_init__(self) -> None:
        self.limits = MotionLimits.from_settings(self.settings)
        self.bounds = WorldBounds.from_settings(self.settings)
        self.participants = ParticipantRegistry(colors=self.settings.colors)
        self.inputs = InputStore(default_speed=self.limits.default_speed)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def start(self) -> None:
        if self._tick_task is not None:
            return
        self._closed = False
        self._tick_task = asyncio.create_task(self._run_ticks())

    async def close(self) -> None:
        self._closed = True
        if self._tick_task is not None:
            self._tick_task.cancel()
            try:
                await self._tick_task
            except asyncio.CancelledError:
                pass
            self._tick_task = None
        async with self._lock:
            outboxes = list(self._connections.values())
            self._connections.clear()
        for outbox in outboxes:
            outbox.close()

    async def join(self, ws: WebSocket) -> Participant:
        async with self._lock:
            p = self.participants.register()
            self.inputs.ensure(p.id)
        logger.info("participant %s joined as %r", p.id, p.name)

        try:
            await ws.send_text(encode_welcome(p))
        except Exception:
            await self.leave(p.id)
            raise

        # only a welcomed socket receives state broadcasts
        async with self._lock:
            if p.id in self.participants:
                self._connections[p.id] = Outbox.open(p.id, ws, self.settings.send_queue_size)
        return p

    async def leave(self, participant_id: str) -> None:
        async with self._lock:
            outbox = self._connections.pop(participant_id, None)
            p = self.participants.remove(participant_id)
            self.inputs.remove(participant_id)
        if outbox is not None:
            outbox.close()
        if p is not None:
            logger.info("participant %s left", participant_id)

    async def handle(self, participant_id: str, msg: ClientMessage) -> None:
        async with self._lock:
            if participant_id not in self.participants:
                return
            if isinstance(msg, IdentifyMessage):
                self.participants.rename(participant_id, msg.name)
            elif isinstance(msg, ResetMessage):
                self.participants.reset(participant_id)
            elif isinstance(msg, InputMessage):
                self.inputs.apply(participant_id, msg)

    async def step(self, dt: float) -> str | None:
        async with self._lock:
            simulate(self.participants, self.inputs, dt, self.limits, self.bounds)
            if not self._connections:
                return None
            payload = encode_state(self.participants.snapshot())
            for outbox in self._connections.values():
                outbox.push(payload)
        return payload

    async def _run_ticks(self) -> None:
        tick_dt = self.settings.tick_interval_ms / 1000.0
        last_tick = time.perf_counter()
        while not self._closed:
            now = time.perf_counter()
            elapsed = now - last_tick
            if elapsed < tick_dt:
                await asyncio.sleep(tick_dt - elapsed)
                continue
            last_tick = now
            try:
                await self.step(elapsed)
            except Exception:
                logger.exception("tick failed")
