from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, Union

from presence.game.constraints import MotionLimits
from presence.game.types import MoveIntent, Participant, ViewIntent, clamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IdentifyMessage:
    name: str | None


@dataclass(frozen=True, slots=True)
class ResetMessage:
    pass


@dataclass(frozen=True, slots=True)
class InputMessage:
    move: MoveIntent | None = None
    speed: float | None = None
    view: ViewIntent | None = None


ClientMessage = Union[IdentifyMessage, ResetMessage, InputMessage]


def _reject_constant(token: str) -> float:
    raise ValueError(f"invalid JSON constant {token}")


def _to_number(value: Any) -> float:
    # missing, null, objects and junk strings all read as 0; infinities are left for clamp
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, int):
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    if isinstance(value, float):
        n = value
    elif isinstance(value, str):
        try:
            n = float(value.strip() or 0)
        except ValueError:
            return 0.0
    else:
        return 0.0
    return 0.0 if math.isnan(n) else n


def _to_finite(value: Any) -> float:
    n = _to_number(value)
    return n if math.isfinite(n) else 0.0


def _is_set(value: Any) -> bool:
    if isinstance(value, (dict, list)):
        return True
    return bool(value)


def _field(obj: Any, key: str) -> Any:
    return obj.get(key) if isinstance(obj, dict) else None


def sanitize_name(name: Any, max_len: int = 16) -> str | None:
    if not isinstance(name, str):
        return None
    name = name.strip()
    if len(name) > max_len:
        name = name[:max_len]
    return name or None


def _decode_input(msg: dict[str, Any], limits: MotionLimits) -> InputMessage:
    move = None
    raw_move = msg.get("move")
    if _is_set(raw_move):
        move = MoveIntent(
            forward=clamp(_to_number(_field(raw_move, "forward")), -1.0, 1.0),
            right=clamp(_to_number(_field(raw_move, "right")), -1.0, 1.0),
            up=clamp(_to_number(_field(raw_move, "up")), -1.0, 1.0),
        )

    speed = None
    raw_speed = msg.get("speed")
    if isinstance(raw_speed, (int, float)) and not isinstance(raw_speed, bool):
        speed = limits.clamp_speed(_to_number(raw_speed))

    view = None
    raw_view = msg.get("view")
    if _is_set(raw_view):
        view = ViewIntent(
            yaw=_to_finite(_field(raw_view, "yaw")),
            pitch=limits.clamp_pitch(_to_number(_field(raw_view, "pitch"))),
        )

    return InputMessage(move=move, speed=speed, view=view)


def decode_message(raw: str | bytes | None, limits: MotionLimits, name_max_len: int = 16) -> ClientMessage | None:
    if raw is None:
        return None
    try:
        msg = json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        logger.debug("dropping unparsable message")
        return None
    if not isinstance(msg, dict):
        return None

    t = msg.get("type")
    if t in ("identify", "hello"):
        return IdentifyMessage(name=sanitize_name(msg.get("name"), name_max_len))
    if t == "reset":
        return ResetMessage()
    if t == "input":
        return _decode_input(msg, limits)
    logger.debug("dropping message of unknown type %r", t)
    return None


def encode_welcome(p: Participant) -> str:
    return json.dumps({"type": "welcome", "id": p.id, "name": p.name, "color": p.color}, ensure_ascii=False)


def encode_state(participants: Iterable[Participant]) -> str:
    return json.dumps({"type": "state", "players": [p.to_public() for p in participants]}, ensure_ascii=False)
