# scorejudge/config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .cards import DEBUG_DECK_SIZE, STANDARD_DECK_SIZE
from .engine import DEFAULT_MAX_PLAYERS
from .errors import InvalidConfiguration

logger = logging.getLogger(__name__)

# Load environment variables from a .env file if present.
load_dotenv()

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class EngineConfig:
    """Settings shared by the service and the command line.

    debug_mode: deal from a 6-card deck so whole games finish in a few
                rounds.
    deck_size: cards in the deck; overrides debug_mode when set explicitly.
    """
    debug_mode: bool = False
    deck_size: int = STANDARD_DECK_SIZE
    max_players: int = DEFAULT_MAX_PLAYERS
    log_level: str = "INFO"


def _int_setting(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise InvalidConfiguration(f"{key} must be an integer; got {raw!r}") from None
    if value < 1:
        raise InvalidConfiguration(f"{key} must be positive; got {value}")
    return value


def load_config(env: Optional[Mapping[str, str]] = None) -> EngineConfig:
    """Read SCOREJUDGE_* settings from `env` (default: os.environ)."""
    if env is None:
        env = os.environ

    debug_mode = env.get("SCOREJUDGE_DEBUG_MODE", "").strip().lower() in _TRUE_VALUES
    default_deck = DEBUG_DECK_SIZE if debug_mode else STANDARD_DECK_SIZE
    config = EngineConfig(
        debug_mode=debug_mode,
        deck_size=_int_setting(env, "SCOREJUDGE_DECK_SIZE", default_deck),
        max_players=_int_setting(env, "SCOREJUDGE_MAX_PLAYERS", DEFAULT_MAX_PLAYERS),
        log_level=env.get("SCOREJUDGE_LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
    logger.debug("Loaded %s", config)
    return config
