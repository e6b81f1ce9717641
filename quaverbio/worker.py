from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any

from .bio_template import UnknownKeyError, bio_length, find_placeholders, find_unknown_keys, render_bio
from .config import DEFAULT_BIO_CHAR_LIMIT, BioConfig, ConfigError, Settings
from .discord_client import DiscordApiError, DiscordClient
from .log_shipping import configure_logging
from .quaver_client import QuaverApiError, QuaverClient


logger = logging.getLogger(__name__)


def run_cycle(
    bio_config: BioConfig,
    quaver: QuaverClient,
    discord: DiscordClient,
    *,
    char_limit: int = DEFAULT_BIO_CHAR_LIMIT,
    strict_keys: bool = False,
) -> dict[str, Any]:
    """Fetch the profile, render the bio and publish it once.

    Every expected failure ends the cycle with a status other than
    ``"updated"``; nothing here is retried before the next tick.
    """
    try:
        record = quaver.get_user(bio_config.quaver_user_id)
    except QuaverApiError as exc:
        logger.error("Failed to get the user's Quaver account data: %s", exc)
        return {"status": "fetch_failed", "error": str(exc)}

    try:
        bio = render_bio(bio_config.bio_schema, record, strict=strict_keys)
    except UnknownKeyError as exc:
        logger.error("The bio schema uses an unknown key %s. Skipping...", exc)
        return {"status": "schema_error", "error": f"unknown key {exc}"}

    length = bio_length(bio)
    if length > char_limit:
        logger.error(
            "The bio string exceeds the character limit of %s (%s characters). Skipping...",
            char_limit,
            length,
        )
        return {"status": "bio_too_long", "length": length, "limit": char_limit}

    try:
        discord.set_bio(bio)
    except DiscordApiError as exc:
        logger.error("Failed to set the user's bio: %s", exc)
        return {"status": "publish_failed", "error": str(exc)}

    logger.info("Successfully set the user's bio")
    return {"status": "updated", "bio": bio, "length": length}


def run_forever(
    bio_config: BioConfig,
    quaver: QuaverClient,
    discord: DiscordClient,
    *,
    stop_event: threading.Event,
    char_limit: int = DEFAULT_BIO_CHAR_LIMIT,
    strict_keys: bool = False,
    max_cycles: int | None = None,
) -> int:
    """Run cycles until ``stop_event`` is set; return how many ran.

    The first cycle starts immediately, later ones wait
    ``bio_config.update_interval`` seconds.
    """
    cycles = 0
    while not stop_event.is_set():
        if cycles and stop_event.wait(bio_config.update_interval):
            break

        try:
            result = run_cycle(
                bio_config,
                quaver,
                discord,
                char_limit=char_limit,
                strict_keys=strict_keys,
            )
            logger.debug("Cycle result: %s", result)
        except Exception:
            logger.exception("Bio update cycle failed.")
        cycles += 1

        if max_cycles is not None and cycles >= max_cycles:
            break
    return cycles


def _install_signal_handlers(stop_event: threading.Event) -> None:
    def _handle(signum: int, frame: object) -> None:
        logger.info("Received %s, shutting down.", signal.Signals(signum).name)
        stop_event.set()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Keep a Discord bio in sync with Quaver profile stats.")
    parser.add_argument("-c", "--config", default=None, help="Path to the config file (overrides QB_CONFIG_PATH).")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--once", action="store_true", help="Run a single update cycle and exit.")
    mode.add_argument(
        "--check",
        action="store_true",
        help="Validate the bio schema in the config file without calling any API.",
    )
    return parser


def _check_schema(bio_config: BioConfig) -> int:
    placeholders = find_placeholders(bio_config.bio_schema)
    unknown = find_unknown_keys(bio_config.bio_schema)
    print(f"Placeholders: {', '.join(placeholders) or '(none)'}")
    if unknown:
        print(f"Unknown keys: {', '.join(unknown)}")
        return 1
    print("All placeholders are known keys.")
    return 0


def _run(settings: Settings, args: argparse.Namespace) -> int:
    try:
        bio_config = BioConfig.load(settings.config_path)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 1

    if args.check:
        return _check_schema(bio_config)

    unknown = find_unknown_keys(bio_config.bio_schema)
    if unknown and settings.strict_schema:
        logger.error("The bio schema uses unknown keys: %s", ", ".join(unknown))
        return 1
    if unknown:
        logger.warning("The bio schema uses unknown keys, they will render empty: %s", ", ".join(unknown))

    try:
        settings.validate()
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    quaver = QuaverClient(base_url=settings.quaver_api_url, timeout=settings.request_timeout_seconds)
    discord = DiscordClient(
        settings.discord_token,
        api_url=settings.discord_api_url,
        timeout=settings.request_timeout_seconds,
    )

    if args.once:
        result = run_cycle(
            bio_config,
            quaver,
            discord,
            char_limit=settings.bio_char_limit,
            strict_keys=settings.strict_schema,
        )
        return 0 if result["status"] == "updated" else 1

    stop_event = threading.Event()
    _install_signal_handlers(stop_event)
    logger.info(
        "Worker started for Quaver user %s with update interval: %ss",
        bio_config.quaver_user_id,
        bio_config.update_interval,
    )
    run_forever(
        bio_config,
        quaver,
        discord,
        stop_event=stop_event,
        char_limit=settings.bio_char_limit,
        strict_keys=settings.strict_schema,
    )
    logger.info("Worker stopped.")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        settings = Settings.from_env()
    except (OSError, UnicodeDecodeError) as exc:
        print(f"Failed to read QB_DISCORD_TOKEN from file: {exc}", file=sys.stderr)
        return 1
    if args.config:
        settings = replace(settings, config_path=Path(args.config))

    try:
        listener = configure_logging(settings)
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1

    try:
        return _run(settings, args)
    finally:
        if listener is not None:
            listener.stop()


if __name__ == "__main__":
    raise SystemExit(main())
