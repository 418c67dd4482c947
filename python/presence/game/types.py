from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def clamp(v: float, lo: float, hi: float) -> float:
    return lo if v < lo else hi if v > hi else v


@dataclass(slots=True)
class MoveIntent:
    forward: float = 0.0
    right: float = 0.0
    up: float = 0.0


@dataclass(slots=True)
class ViewIntent:
    yaw: float = 0.0
    pitch: float = 0.0


@dataclass(slots=True)
class InputSample:
    move: MoveIntent = field(default_factory=MoveIntent)
    speed: float = 0.6
    view: ViewIntent = field(default_factory=ViewIntent)


@dataclass(slots=True)
class Participant:
    id: str
    name: str
    color: str
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    yaw: float = 0.0
    pitch: float = 0.0

    def to_public(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "x": self.x,
            "y": self.y,
            "z": self.z,
            "yaw": self.yaw,
            "pitch": self.pitch,
        }
