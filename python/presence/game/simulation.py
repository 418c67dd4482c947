from __future__ import annotations

import math

from presence.game.constraints import MotionLimits, WorldBounds, apply_world_bounds
from presence.game.input_store import InputStore
from presence.game.registry import ParticipantRegistry
from presence.game.types import InputSample, Participant


def forward_vector(yaw: float, pitch: float) -> tuple[float, float, float]:
    cos_pitch = math.cos(pitch)
    return math.sin(yaw) * cos_pitch, math.cos(yaw) * cos_pitch, -math.sin(pitch)


def right_vector(yaw: float) -> tuple[float, float, float]:
    return math.cos(yaw), -math.sin(yaw), 0.0


def step_participant(p: Participant, sample: InputSample, dt: float, limits: MotionLimits, bounds: WorldBounds) -> None:
    # orientation first, then vectors, then integration; bounds clamp is always last
    p.yaw = sample.view.yaw
    p.pitch = limits.clamp_pitch(sample.view.pitch)

    fx, fy, fz = forward_vector(p.yaw, p.pitch)
    rx, ry, _ = right_vector(p.yaw)
    speed = limits.base_move_speed * limits.clamp_speed(sample.speed)
    step = speed * dt if dt > 0.0 else 0.0

    move = sample.move
    p.x += fx * move.forward * step + rx * move.right * step
    p.y += fy * move.forward * step + ry * move.right * step
    p.z += fz * move.forward * step + move.up * step

    apply_world_bounds(p, bounds)


def simulate(
    registry: ParticipantRegistry,
    inputs: InputStore,
    dt: float,
    limits: MotionLimits,
    bounds: WorldBounds,
) -> None:
    for p in registry.snapshot():
        step_participant(p, inputs.ensure(p.id), dt, limits, bounds)
