from __future__ import annotations

import math
import os
from dataclasses import dataclass


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True, slots=True)
class Settings:
    app_name: str = "presence-sync"
    cors_allow_origins: tuple[str, ...] = ("*",)

    host: str = "0.0.0.0"
    port: int = 3000
    ws_path: str = "/"

    tick_interval_ms: int = 33
    send_queue_size: int = 4

    base_move_speed: float = 0.9
    max_pitch_deg: float = 60.0
    min_speed: float = 0.1
    max_speed: float = 2.0
    default_speed: float = 0.6
    world_half_x: float = 2.2
    world_half_y: float = 3.2
    world_half_z: float = 2.2

    name_max_len: int = 16
    colors: tuple[str, ...] = ("#7bdff2", "#f2b5d4", "#b8f2e6", "#f4d35e", "#ee6c4d", "#9b5de5")

    public_dir: str = "public"
    live_reload: bool = True
    log_level: str = "INFO"

    @property
    def max_pitch(self) -> float:
        return math.radians(self.max_pitch_deg)

    @staticmethod
    def from_env() -> "Settings":
        cors_raw = _get_env("CORS_ALLOW_ORIGINS", "*") or "*"
        cors_allow_origins = tuple(x.strip() for x in cors_raw.split(",") if x.strip()) or ("*",)

        return Settings(
            app_name=_get_env("APP_NAME", "presence-sync") or "presence-sync",
            cors_allow_origins=cors_allow_origins,
            host=_get_env("HOST", "0.0.0.0") or "0.0.0.0",
            port=_get_env_int("PORT", 3000),
            ws_path=_get_env("WS_PATH", "/") or "/",
            tick_interval_ms=max(1, _get_env_int("TICK_INTERVAL_MS", 33)),
            send_queue_size=max(1, _get_env_int("SEND_QUEUE_SIZE", 4)),
            base_move_speed=_get_env_float("BASE_MOVE_SPEED", 0.9),
            max_pitch_deg=_get_env_float("MAX_PITCH_DEG", 60.0),
            min_speed=_get_env_float("MIN_SPEED", 0.1),
            max_speed=_get_env_float("MAX_SPEED", 2.0),
            default_speed=_get_env_float("DEFAULT_SPEED", 0.6),
            world_half_x=_get_env_float("WORLD_HALF_X", 2.2),
            world_half_y=_get_env_float("WORLD_HALF_Y", 3.2),
            world_half_z=_get_env_float("WORLD_HALF_Z", 2.2),
            name_max_len=_get_env_int("NAME_MAX_LEN", 16),
            public_dir=_get_env("PUBLIC_DIR", "public") or "public",
            live_reload=_get_env_bool("LIVE_RELOAD", True),
            log_level=(_get_env("LOG_LEVEL", "INFO") or "INFO").upper(),
        )


settings = Settings.from_env()
