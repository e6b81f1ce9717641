"""Bio schema rendering.

A schema is plain text with ``{key}`` placeholders, for example::

    Hello, {username}! Your 4K rank is {4k_rank}.

Supported keys:

- ``{username}`` / ``{country}``
- ``{4k_rank}`` / ``{7k_rank}``: global rank
- ``{4k_rank_country}`` / ``{7k_rank_country}``: country rank
- ``{4k_total_score}`` / ``{7k_total_score}``
- ``{4k_ranked_score}`` / ``{7k_ranked_score}``
- ``{4k_accuracy}`` / ``{7k_accuracy}``: two decimals
- ``{4k_performance_rating}`` / ``{7k_performance_rating}``: two decimals
- ``{4k_play_count}`` / ``{7k_play_count}``
- ``{4k_fail_count}`` / ``{7k_fail_count}``
- ``{4k_max_combo}`` / ``{7k_max_combo}``

Unknown keys render as an empty string unless ``strict`` is requested.
"""
from __future__ import annotations

import re
from typing import Callable

from .models import ModeStats, ProfileRecord


PLACEHOLDER_PATTERN = re.compile(r"\{(\w+)\}")

KeyResolver = Callable[[ProfileRecord], str]


class UnknownKeyError(KeyError):
    pass


def _two_decimals(value: float) -> str:
    return f"{value:.2f}"


def _mode_resolvers(prefix: str, mode: Callable[[ProfileRecord], ModeStats]) -> dict[str, KeyResolver]:
    return {
        f"{prefix}_rank": lambda record: str(mode(record).ranks.global_rank),
        f"{prefix}_rank_country": lambda record: str(mode(record).ranks.country_rank),
        f"{prefix}_total_score": lambda record: str(mode(record).total_score),
        f"{prefix}_ranked_score": lambda record: str(mode(record).ranked_score),
        f"{prefix}_accuracy": lambda record: _two_decimals(mode(record).overall_accuracy),
        f"{prefix}_performance_rating": lambda record: _two_decimals(mode(record).overall_performance_rating),
        f"{prefix}_play_count": lambda record: str(mode(record).play_count),
        f"{prefix}_fail_count": lambda record: str(mode(record).fail_count),
        f"{prefix}_max_combo": lambda record: str(mode(record).max_combo),
    }


KEY_RESOLVERS: dict[str, KeyResolver] = {
    "username": lambda record: record.username,
    "country": lambda record: record.country,
    **_mode_resolvers("4k", lambda record: record.stats_keys4),
    **_mode_resolvers("7k", lambda record: record.stats_keys7),
}


def resolve_key(key: str, record: ProfileRecord, *, strict: bool = False) -> str:
    resolver = KEY_RESOLVERS.get(key)
    if resolver is None:
        if strict:
            raise UnknownKeyError(key)
        return ""
    return resolver(record)


def render_bio(schema: str, record: ProfileRecord, *, strict: bool = False) -> str:
    return PLACEHOLDER_PATTERN.sub(
        lambda match: resolve_key(match.group(1), record, strict=strict),
        schema,
    )


def find_placeholders(schema: str) -> list[str]:
    return PLACEHOLDER_PATTERN.findall(schema)


def find_unknown_keys(schema: str) -> list[str]:
    unknown: list[str] = []
    for key in find_placeholders(schema):
        if key not in KEY_RESOLVERS and key not in unknown:
            unknown.append(key)
    return unknown


def bio_length(bio: str) -> int:
    """Characters as Discord counts them, not UTF-8 bytes."""
    return len(bio)
