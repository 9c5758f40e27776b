from __future__ import annotations

from dataclasses import dataclass
import os


# ─────────────────────────────────────────────────────────────────────────────
# Defaults
# ─────────────────────────────────────────────────────────────────────────────

# Delay between flood rounds; one wave of packets is "in flight" for this long.
FLOOD_ROUND_DELAY_SEC = 1.2

DEFAULT_LINK_WEIGHT = 1

# Oldest snapshots are dropped past this depth.
MAX_HISTORY = 200

EVENT_LOG_LIMIT = 5000


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class EngineSettings:
    flood_round_delay_sec: float = FLOOD_ROUND_DELAY_SEC
    default_link_weight: int = DEFAULT_LINK_WEIGHT
    max_history: int = MAX_HISTORY
    event_log_limit: int = EVENT_LOG_LIMIT

    @staticmethod
    def from_env() -> "EngineSettings":
        return EngineSettings(
            flood_round_delay_sec=_env_float("ROUTESIM_FLOOD_DELAY", FLOOD_ROUND_DELAY_SEC),
            max_history=_env_int("ROUTESIM_MAX_HISTORY", MAX_HISTORY),
            event_log_limit=_env_int("ROUTESIM_EVENT_LOG_LIMIT", EVENT_LOG_LIMIT),
        )
