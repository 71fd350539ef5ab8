"""
Engine-wide settings.

Values can be overridden from the environment (GEOSTAT_* variables).
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class EngineSettings:
    """
    Settings shared by every flatten call.

    Attributes:
        base_year: First year of the positional fallback (base_year + index)
        min_year: Exclusive lower bound of a plausible year
        max_year: Exclusive upper bound of a plausible year
        separator: Joins dimension labels into a series label
        cache_size: Entries kept by each memoization cache
        default_language: Language used when a call does not name one
        languages: Languages derivation labels are expected in
    """
    base_year: int = 2017
    min_year: int = 1900
    max_year: int = 3000
    separator: str = " - "
    cache_size: int = 256
    default_language: str = "ka"
    languages: Tuple[str, ...] = field(default=("ka", "en"))

    def is_plausible_year(self, value: int) -> bool:
        return self.min_year < value < self.max_year

    @classmethod
    def from_env(cls, environ=None) -> "EngineSettings":
        """Build settings, applying GEOSTAT_* overrides from the environment."""
        env = os.environ if environ is None else environ
        settings = cls()

        base_year = _int_from_env(env, "GEOSTAT_BASE_YEAR")
        if base_year is not None:
            settings.base_year = base_year

        cache_size = _int_from_env(env, "GEOSTAT_CACHE_SIZE")
        if cache_size is not None and cache_size > 0:
            settings.cache_size = cache_size

        language = env.get("GEOSTAT_DEFAULT_LANGUAGE", "").strip()
        if language in settings.languages:
            settings.default_language = language
        elif language:
            logger.warning(
                f"Ignoring GEOSTAT_DEFAULT_LANGUAGE={language!r}: "
                f"expected one of {list(settings.languages)}"
            )

        return settings


def _int_from_env(env, name: str) -> Optional[int]:
    raw = env.get(name)
    if raw is None or not str(raw).strip():
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring malformed {name}={raw!r}: not an integer")
        return None


DEFAULT_SETTINGS = EngineSettings()
