import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_DANGER_KEYWORDS: Tuple[str, ...] = (
    "verify your account",
    "urgent action",
    "password expiration",
    "lottery winner",
    "bank of america",
    "update payment",
)


class ConfigurationError(ValueError):
    """Raised at startup when settings or scoring rules are unusable."""


@dataclass(frozen=True)
class ScoringRules:
    """Points, weights and probabilities used by the scoring engine."""

    danger_keywords: Tuple[str, ...] = DEFAULT_DANGER_KEYWORDS
    keyword_points: int = 30
    keyword_weight: float = 0.8
    http_points: int = 10
    http_weight: float = 0.4
    spf_fail_points: int = 25
    spf_fail_weight: float = 0.6
    spf_fail_probability: float = 0.2
    ip_url_probability: float = 0.1
    mismatched_sender_probability: float = 0.15
    max_urls_count: int = 5

    def validate(self) -> "ScoringRules":
        if not self.danger_keywords:
            raise ConfigurationError("At least one danger keyword is required")

        seen = set()
        for keyword in self.danger_keywords:
            if not isinstance(keyword, str) or not keyword.strip():
                raise ConfigurationError(f"Invalid danger keyword: {keyword!r}")
            folded = keyword.lower()
            if folded in seen:
                raise ConfigurationError(f"Duplicate danger keyword: {keyword!r}")
            seen.add(folded)

        for name in ("keyword_weight", "http_weight", "spf_fail_weight"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be within [0, 1], got {value}")

        for name in (
            "spf_fail_probability",
            "ip_url_probability",
            "mismatched_sender_probability",
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be within [0, 1], got {value}")

        for name in ("keyword_points", "http_points", "spf_fail_points"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must not be negative")

        if self.max_urls_count < 1:
            raise ConfigurationError("max_urls_count must be at least 1")

        return self


@dataclass(frozen=True)
class Settings:
    analysis_delay_ms: int = 1500
    random_seed: Optional[int] = None
    history_limit: int = 100
    session_limit: int = 1000
    rules: ScoringRules = field(default_factory=ScoringRules)


def _int_setting(
    env: Mapping[str, str],
    name: str,
    default: Optional[int],
    minimum: Optional[int] = 0,
) -> Optional[int]:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if minimum is not None and value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables.

    Raises:
        ConfigurationError: on malformed values or invalid keyword overrides
    """
    env = os.environ if env is None else env

    keywords = DEFAULT_DANGER_KEYWORDS
    raw_keywords = env.get("DANGER_KEYWORDS")
    if raw_keywords:
        keywords = tuple(part.strip() for part in raw_keywords.split(","))

    settings = Settings(
        analysis_delay_ms=_int_setting(env, "ANALYSIS_DELAY_MS", 1500),
        random_seed=_int_setting(env, "RANDOM_SEED", None, minimum=None),
        history_limit=_int_setting(env, "HISTORY_LIMIT", 100, minimum=1),
        session_limit=_int_setting(env, "SESSION_LIMIT", 1000, minimum=1),
        rules=ScoringRules(danger_keywords=keywords).validate(),
    )

    logger.debug(
        "Settings loaded: delay=%dms keywords=%d history_limit=%d",
        settings.analysis_delay_ms,
        len(settings.rules.danger_keywords),
        settings.history_limit,
    )
    return settings
