"""
config.py – Centralised configuration loaded from environment variables.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from dotenv import load_dotenv

from errors import ConfigurationError

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """Validated, read-only application settings."""

    # ── Source collection ───────────────────────────────────
    SOURCE_ORG_URL: str = os.getenv("SOURCE_ORG_URL", "").rstrip("/")
    SOURCE_PAT: str = os.getenv("SOURCE_PAT", "")
    SOURCE_PROJECT: str = os.getenv("SOURCE_PROJECT", "")

    # ── Target collection ───────────────────────────────────
    TARGET_ORG_URL: str = os.getenv("TARGET_ORG_URL", "").rstrip("/")
    TARGET_PAT: str = os.getenv("TARGET_PAT", "")
    TARGET_PROJECT: str = os.getenv("TARGET_PROJECT", "")

    # ── Reflected work-item id ──────────────────────────────
    # The field must exist on the target Test Case type before migrating.
    REFLECTED_BASE_URI: str = os.getenv("REFLECTED_BASE_URI", "") or TARGET_ORG_URL
    REFLECTED_FIELD: str = os.getenv("REFLECTED_FIELD", "Custom.ReflectedWorkitemId")

    # ── Behaviour ───────────────────────────────────────────
    USER_MAP_FILE: str = os.getenv("USER_MAP_FILE", "")
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "30"))
    BYPASS_RULES: bool = _env_bool("BYPASS_RULES", "true")

    @classmethod
    def validate(cls) -> None:
        """Raise early if required values are missing."""
        missing: list[str] = []
        for name in (
            "SOURCE_ORG_URL",
            "SOURCE_PAT",
            "SOURCE_PROJECT",
            "TARGET_ORG_URL",
            "TARGET_PAT",
            "TARGET_PROJECT",
        ):
            if not getattr(cls, name):
                missing.append(name)

        if cls.REQUEST_TIMEOUT <= 0:
            raise ConfigurationError(
                f"REQUEST_TIMEOUT must be positive, got {cls.REQUEST_TIMEOUT}"
            )

        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}\n"
                "  → Copy .env.example to .env and fill in all values."
            )

    @staticmethod
    def load_user_map(path: str | Path | None) -> dict[str, str]:
        """Read the display-name map from a JSON file.

        Accepts either an object (``{"source": "target"}``) or a list of
        ``[source, target]`` pairs.  A falsy *path* yields an empty map.
        """
        if not path:
            return {}
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigurationError(f"Cannot read user map {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"User map {path} is not valid JSON: {exc}") from exc

        if isinstance(raw, dict):
            pairs = list(raw.items())
        elif isinstance(raw, list):
            pairs = raw
        else:
            raise ConfigurationError(f"User map {path} must be an object or a list of pairs")

        user_map: dict[str, str] = {}
        for pair in pairs:
            if (
                not isinstance(pair, (list, tuple))
                or len(pair) != 2
                or not all(isinstance(name, str) for name in pair)
            ):
                raise ConfigurationError(f"Invalid user map entry in {path}: {pair!r}")
            source_name, target_name = pair
            user_map[source_name] = target_name
        return user_map
