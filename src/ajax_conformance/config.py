"""Harness configuration.

Values are resolved in this order, first hit wins:

1. Keyword overrides passed to ``load_config`` (the CLI flags)
2. Process environment (``WP_URL``, ``WP_USERNAME``, ``WP_PASSWORD``, ...)
3. A ``KEY=VALUE`` env file (``.env`` in the working directory by default)
4. Built-in defaults

Credentials have no defaults. A run without URL, username and password fails
fast with ``ConfigurationError``.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urljoin

from ajax_conformance.errors import ConfigurationError

DEFAULT_REPORT_PATH = "logs/all-tools-detailed-report.json"
DEFAULT_DISCOVERY_PATH = "logs/discovered-elements.json"
DEFAULT_CONSOLE_KEYWORDS = ("AISEO", "aiseoAdmin", "nonce", "Nonce")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def read_env_file(path: Path) -> Dict[str, str]:
    """Parse a ``.env`` style file into a dict.

    Blank lines and ``#`` comments are skipped, matching quotes around values
    are stripped. A missing file yields an empty dict.
    """
    if not path.exists():
        return {}

    values: Dict[str, str] = {}
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if key.startswith("export "):
            key = key[len("export "):].strip()
        value = value.strip()
        if len(value) >= 2 and value[0] in ('"', "'") and value[-1] == value[0]:
            value = value[1:-1]
        values[key] = value
    return values


def _parse_bool(key: str, raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigurationError(f"{key} must be a boolean, got {raw!r}")


def _parse_int(key: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from None


@dataclass
class HarnessConfig:
    """Concrete target + behaviour settings for one harness run."""

    base_url: str
    username: str
    password: str
    headless: bool = True
    browser_type: str = "chromium"
    ignore_https_errors: bool = True
    driver_timeout_ms: int = 30000
    report_path: Path = Path(DEFAULT_REPORT_PATH)
    discovery_path: Path = Path(DEFAULT_DISCOVERY_PATH)
    login_path: str = "wp-admin"
    admin_page_path: str = "wp-admin/admin.php?page=aiseo"
    async_endpoint: str = "admin-ajax.php"
    action_prefix: str = "aiseo_"
    session_cookie_markers: Tuple[str, ...] = ("wordpress_logged_in_", "wordpress_sec_")
    console_keywords: Tuple[str, ...] = field(default=DEFAULT_CONSOLE_KEYWORDS)
    max_skipped: Optional[int] = None
    preflight: bool = True

    def __post_init__(self) -> None:
        missing = [
            name
            for name, value in (
                ("WP_URL", self.base_url),
                ("WP_USERNAME", self.username),
                ("WP_PASSWORD", self.password),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required settings: {', '.join(missing)}\n"
                f"Set them in the environment, in a .env file or via CLI flags."
            )
        if self.browser_type not in ("chromium", "firefox", "webkit"):
            raise ConfigurationError(f"Unsupported browser type: {self.browser_type}")
        if self.max_skipped is not None and self.max_skipped < 0:
            raise ConfigurationError("max_skipped must not be negative")
        self.report_path = Path(self.report_path)
        self.discovery_path = Path(self.discovery_path)

    # ---- url helpers ------------------------------------------------------------
    def url(self, path: str) -> str:
        """Return an absolute URL for the provided path."""
        return urljoin(self.base_url.rstrip("/") + "/", path.lstrip("/"))

    @property
    def login_url(self) -> str:
        return self.url(self.login_path)

    def tab_url(self, tab_slug: str) -> str:
        return f"{self.url(self.admin_page_path)}&tab={tab_slug}"


_ENV_KEYS = {
    "base_url": "WP_URL",
    "username": "WP_USERNAME",
    "password": "WP_PASSWORD",
    "headless": "PLAYWRIGHT_HEADLESS",
    "browser_type": "PLAYWRIGHT_BROWSER",
    "ignore_https_errors": "HARNESS_IGNORE_HTTPS_ERRORS",
    "driver_timeout_ms": "HARNESS_DRIVER_TIMEOUT_MS",
    "report_path": "HARNESS_REPORT_PATH",
    "discovery_path": "HARNESS_DISCOVERY_PATH",
    "max_skipped": "HARNESS_MAX_SKIPPED",
    "preflight": "HARNESS_PREFLIGHT",
}
_BOOL_FIELDS = {"headless", "ignore_https_errors", "preflight"}
_INT_FIELDS = {"driver_timeout_ms", "max_skipped"}


def load_config(
    env_file: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> HarnessConfig:
    """Build a ``HarnessConfig`` from overrides, environment and env file."""
    env_path = Path(env_file) if env_file else Path.cwd() / ".env"
    if env_file and not env_path.exists():
        raise ConfigurationError(f"Env file not found: {env_path}")
    file_values = read_env_file(env_path)
    process_env = os.environ if environ is None else environ

    kwargs: Dict[str, Any] = {}
    for field_name, env_key in _ENV_KEYS.items():
        if overrides.get(field_name) is not None:
            kwargs[field_name] = overrides[field_name]
            continue
        raw = process_env.get(env_key) or file_values.get(env_key)
        if raw is None or raw == "":
            continue
        if field_name in _BOOL_FIELDS:
            kwargs[field_name] = _parse_bool(env_key, raw)
        elif field_name in _INT_FIELDS:
            kwargs[field_name] = _parse_int(env_key, raw)
        else:
            kwargs[field_name] = raw

    for required in ("base_url", "username", "password"):
        kwargs.setdefault(required, "")

    extra = {k: v for k, v in overrides.items() if k not in _ENV_KEYS and v is not None}
    kwargs.update(extra)
    return HarnessConfig(**kwargs)
