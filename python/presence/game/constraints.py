from __future__ import annotations

from dataclasses import dataclass

from presence.config import Settings
from presence.game.types import Participant, clamp


@dataclass(frozen=True, slots=True)
class MotionLimits:
    max_pitch: float
    min_speed: float
    max_speed: float
    default_speed: float
    base_move_speed: float

    @staticmethod
    def from_settings(s: Settings) -> "MotionLimits":
        return MotionLimits(
            max_pitch=s.max_pitch,
            min_speed=s.min_speed,
            max_speed=s.max_speed,
            default_speed=clamp(s.default_speed, s.min_speed, s.max_speed),
            base_move_speed=s.base_move_speed,
        )

    def clamp_pitch(self, pitch: float) -> float:
        return clamp(pitch, -self.max_pitch, self.max_pitch)

    def clamp_speed(self, speed: float) -> float:
        return clamp(speed, self.min_speed, self.max_speed)


@dataclass(frozen=True, slots=True)
class WorldBounds:
    half_x: float
    half_y: float
    half_z: float

    @staticmethod
    def from_settings(s: Settings) -> "WorldBounds":
        return WorldBounds(half_x=abs(s.world_half_x), half_y=abs(s.world_half_y), half_z=abs(s.world_half_z))

    def contains(self, x: float, y: float, z: float) -> bool:
        return abs(x) <= self.half_x and abs(y) <= self.half_y and abs(z) <= self.half_z


def apply_world_bounds(p: Participant, bounds: WorldBounds) -> bool:
    """Clamp ``p`` into ``bounds`` in place. Returns True when any axis moved."""
    x = clamp(p.x, -bounds.half_x, bounds.half_x)
    y = clamp(p.y, -bounds.half_y, bounds.half_y)
    z = clamp(p.z, -bounds.half_z, bounds.half_z)
    clamped = x != p.x or y != p.y or z != p.z
    p.x = x
    p.y = y
    p.z = z
    return clamped
