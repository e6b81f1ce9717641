from __future__ import annotations

from dataclasses import dataclass
from typing import Any


def _require_int(payload: dict[str, Any], key: str, *, default: int | None = None) -> int:
    value = payload.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected integer for '{key}', got {value!r}")
    return value


def _require_float(payload: dict[str, Any], key: str) -> float:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Expected number for '{key}', got {value!r}")
    return float(value)


def _require_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise ValueError(f"Expected string for '{key}', got {value!r}")
    return value


def _require_dict(payload: dict[str, Any], key: str) -> dict[str, Any]:
    value = payload.get(key)
    if not isinstance(value, dict):
        raise ValueError(f"Expected object for '{key}', got {value!r}")
    return value


@dataclass(frozen=True)
class Ranks:
    global_rank: int
    country_rank: int
    total_hits: int = 0

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Ranks":
        return cls(
            global_rank=_require_int(payload, "global"),
            country_rank=_require_int(payload, "country"),
            total_hits=_require_int(payload, "total_hits", default=0),
        )


@dataclass(frozen=True)
class ModeStats:
    """Statistics for one key mode (4K or 7K) of a Quaver profile."""

    ranks: Ranks
    total_score: int
    ranked_score: int
    overall_accuracy: float
    overall_performance_rating: float
    play_count: int
    fail_count: int
    max_combo: int

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ModeStats":
        return cls(
            ranks=Ranks.from_payload(_require_dict(payload, "ranks")),
            total_score=_require_int(payload, "total_score"),
            ranked_score=_require_int(payload, "ranked_score"),
            overall_accuracy=_require_float(payload, "overall_accuracy"),
            overall_performance_rating=_require_float(payload, "overall_performance_rating"),
            play_count=_require_int(payload, "play_count"),
            fail_count=_require_int(payload, "fail_count"),
            max_combo=_require_int(payload, "max_combo"),
        )


@dataclass(frozen=True)
class ProfileRecord:
    """A snapshot of a player's public Quaver profile.

    Built from the ``"user"`` object of ``GET /v2/user/{id}``. Fields the
    bio never uses are not kept.
    """

    id: int
    username: str
    country: str
    stats_keys4: ModeStats
    stats_keys7: ModeStats
    avatar_url: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ProfileRecord":
        if not isinstance(payload, dict):
            raise ValueError(f"Expected user object, got {type(payload).__name__}")
        avatar_url = payload.get("avatar_url")
        return cls(
            id=_require_int(payload, "id"),
            username=_require_str(payload, "username"),
            country=_require_str(payload, "country"),
            stats_keys4=ModeStats.from_payload(_require_dict(payload, "stats_keys4")),
            stats_keys7=ModeStats.from_payload(_require_dict(payload, "stats_keys7")),
            avatar_url=avatar_url if isinstance(avatar_url, str) else None,
        )
