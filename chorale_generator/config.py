"""Tunable constants and persisted user settings.

:class:`ChoraleConfig` collects every threshold the composer and the
finishing pass consult.  The defaults reproduce the classic behaviour: a
piece must last between 15 and 200 beats, phrases longer than three
measures receive a cadence and the result is centred between MIDI pitches
40 and 83.

Settings are stored as JSON in the user's home directory (or at
``$CHORALE_SETTINGS_FILE``) so the command line can remember preferred
values between runs.

Example
-------
>>> cfg = config_from_settings({"max_attempts": 50})
>>> cfg.max_attempts
50
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

__all__ = [
    "ChoraleConfig",
    "DEFAULT_CONFIG",
    "DEFAULT_SETTINGS_FILE",
    "load_settings",
    "save_settings",
    "config_from_settings",
]

logger = logging.getLogger(__name__)

# The settings file lives in the user's home directory unless the
# environment points elsewhere.
env_path = os.environ.get("CHORALE_SETTINGS_FILE")
if env_path:
    DEFAULT_SETTINGS_FILE = Path(env_path).expanduser()
else:
    DEFAULT_SETTINGS_FILE = Path.home() / ".chorale_generator_settings.json"


@dataclass(frozen=True)
class ChoraleConfig:
    """Thresholds used while composing and finishing a chorale.

    All times are in units where ``1000`` is one beat.

    Attributes
    ----------
    min_length, max_length:
        Accepted range for the end time of the last note.
    min_steps:
        The chain may only stop once more than this many beats were added.
    cadence_wait:
        The opening must run at least this long before a held note.
    long_phrase:
        Gap between clean chords above which a cadence is inserted.
    upbeat_delay:
        Offset applied to pieces that open with a pickup.
    range_low, range_high:
        Bass floor and soprano ceiling used for transposition.
    max_attempts:
        Ceiling on composition attempts; ``None`` retries forever.
    """

    min_length: int = 15000
    max_length: int = 200000
    min_steps: int = 36
    cadence_wait: int = 4000
    long_phrase: int = 12000
    upbeat_delay: int = 3000
    range_low: int = 40
    range_high: int = 83
    max_attempts: Optional[int] = 10000

    def __post_init__(self) -> None:
        if self.min_length < 0 or self.max_length <= self.min_length:
            raise ValueError(
                f"length bounds must satisfy 0 <= min_length < max_length, got "
                f"{self.min_length}..{self.max_length}"
            )
        if self.min_steps < 0:
            raise ValueError(f"min_steps must be >= 0, got {self.min_steps}")
        for name in ("cadence_wait", "long_phrase", "upbeat_delay"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.range_low >= self.range_high:
            raise ValueError(
                f"range_low must be below range_high, got {self.range_low}..{self.range_high}"
            )
        if self.max_attempts is not None and self.max_attempts <= 0:
            raise ValueError(f"max_attempts must be positive, got {self.max_attempts}")


DEFAULT_CONFIG = ChoraleConfig()


def load_settings(path: Path = DEFAULT_SETTINGS_FILE) -> dict:
    """Load saved user settings from ``path`` if it exists.

    A missing or unreadable file yields an empty dictionary so composing
    never fails because of preferences.
    """

    if path.is_file():
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.error("Could not load settings: %s", exc)
            return {}
        if isinstance(data, dict):
            return data
        logger.error("Settings file %s does not contain an object", path)
    return {}


def save_settings(settings: Mapping[str, Any], path: Path = DEFAULT_SETTINGS_FILE) -> None:
    """Save ``settings`` to ``path`` as JSON.

    Write failures are logged and otherwise ignored.
    """

    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(dict(settings), fh, indent=2)
    except OSError as exc:
        logger.error("Could not save settings: %s", exc)


def config_from_settings(
    settings: Mapping[str, Any], base: ChoraleConfig = DEFAULT_CONFIG
) -> ChoraleConfig:
    """Return ``base`` updated with the recognised keys of ``settings``.

    Unknown keys are reported and skipped; invalid values raise
    ``ValueError`` from :class:`ChoraleConfig`.
    """

    known = {f.name for f in fields(ChoraleConfig)}
    values = asdict(base)
    for key, value in settings.items():
        if key not in known:
            logger.warning("Ignoring unknown setting %r", key)
            continue
        values[key] = value
    return ChoraleConfig(**values)
