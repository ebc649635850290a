"""
lists_sync/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

DEFAULT_TOKEN_URL = "https://auth-secure.auth.ap-southeast-2.amazoncognito.com/oauth2/token"
DEFAULT_TOKEN_SCOPE = "ala/attrs ala/internal users/read"

REQUIRED_ENV_VARS = (
    "GITHUB_WEBHOOK_SECRET",
    "GITHUB_REPO",
    "SLACK_BOT_TOKEN",
    "SLACK_SIGNING_SECRET",
    "SLACK_CHANNEL_ID",
    "LISTS_API_ENDPOINT",
    "LISTS_AUTH_CLIENT_ID",
    "LISTS_AUTH_CLIENT_SECRET",
)


class ListsEnvironment:
    TEST = "test"
    PROD = "prod"


_ALLOWED_LISTS_ENVIRONMENTS = {ListsEnvironment.TEST, ListsEnvironment.PROD}


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def resolve_lists_environment(explicit: str | None, api_endpoint: str) -> str:
    """
    Resolve the Lists deployment environment once.

    An explicit LISTS_ENVIRONMENT wins; otherwise endpoints containing
    ``.test`` select the test partition of drs.json.
    """

    if explicit:
        normalized = explicit.strip().lower()
        if normalized not in _ALLOWED_LISTS_ENVIRONMENTS:
            raise RuntimeError(
                f"LISTS_ENVIRONMENT '{explicit}' is not valid. "
                f"Allowed values: {sorted(_ALLOWED_LISTS_ENVIRONMENTS)}."
            )
        return normalized
    return ListsEnvironment.TEST if ".test" in api_endpoint else ListsEnvironment.PROD


def missing_required_env() -> list[str]:
    """
    Return the names of required variables that are unset or empty.
    """

    _load_env_once()
    return [name for name in REQUIRED_ENV_VARS if not os.getenv(name, "").strip()]


@dataclass(frozen=True)
class ExternalHTTPSettings:
    """
    Shared HTTP behavior settings for outbound connectors.
    """

    timeout_seconds: float = 30.0
    max_retries: int = 2
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0


@dataclass(frozen=True)
class GitHubSettings:
    """
    Monitored repository and webhook settings.
    """

    webhook_secret: str
    repo: str
    token: str | None = None
    branch: str = "main"
    api_url: str = "https://api.github.com"
    web_url: str = "https://github.com"

    @property
    def owner_and_name(self) -> tuple[str, str]:
        owner, _, name = self.repo.partition("/")
        return owner, name


@dataclass(frozen=True)
class ListsAPISettings:
    """
    Lists API endpoint, credentials and resolved environment.
    """

    api_endpoint: str
    client_id: str
    client_secret: str
    environment: str
    token_url: str = DEFAULT_TOKEN_URL
    scope: str = DEFAULT_TOKEN_SCOPE
    ui_url: str = "https://lists.ala.org.au"


@dataclass(frozen=True)
class SlackSettings:
    """
    Slack bot credentials and target channel.
    """

    bot_token: str
    signing_secret: str
    channel_id: str


@dataclass(frozen=True)
class PollingSettings:
    """
    Ingest progress polling policy.
    """

    interval_seconds: float = 5.0
    max_attempts: int = 120


@dataclass(frozen=True)
class ImportSettings:
    """
    Repository layout conventions for importable list files.
    """

    import_root: str = "imported_GoogleSheets"
    drs_config_path: str = "drs.json"


@lru_cache(maxsize=1)
def get_external_http_settings() -> ExternalHTTPSettings:
    """
    Return shared connector HTTP settings from environment variables.
    """

    return ExternalHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("EXTERNAL_HTTP_TIMEOUT_SECONDS", 30.0)),
        max_retries=max(0, _get_int_env("EXTERNAL_HTTP_MAX_RETRIES", 2)),
        backoff_initial_seconds=max(0.1, _get_float_env("EXTERNAL_HTTP_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("EXTERNAL_HTTP_BACKOFF_MULTIPLIER", 2.0)),
    )


@lru_cache(maxsize=1)
def get_github_settings() -> GitHubSettings:
    """
    Return GitHub settings from environment variables.
    """

    return GitHubSettings(
        webhook_secret=_get_str_env("GITHUB_WEBHOOK_SECRET", ""),
        repo=_get_str_env("GITHUB_REPO", ""),
        token=_get_optional_str_env("GITHUB_TOKEN"),
        branch=_get_str_env("GITHUB_BRANCH", "main"),
        api_url=_get_str_env("GITHUB_API_URL", "https://api.github.com").rstrip("/"),
        web_url=_get_str_env("GITHUB_WEB_URL", "https://github.com").rstrip("/"),
    )


@lru_cache(maxsize=1)
def get_lists_api_settings() -> ListsAPISettings:
    """
    Return Lists API settings from environment variables.

    Raises RuntimeError if LISTS_ENVIRONMENT is set to an unknown value.
    """

    api_endpoint = _get_str_env("LISTS_API_ENDPOINT", "").rstrip("/")
    environment = resolve_lists_environment(
        _get_optional_str_env("LISTS_ENVIRONMENT"),
        api_endpoint,
    )
    default_ui_url = (
        "https://lists.test.ala.org.au"
        if environment == ListsEnvironment.TEST
        else "https://lists.ala.org.au"
    )
    return ListsAPISettings(
        api_endpoint=api_endpoint,
        client_id=_get_str_env("LISTS_AUTH_CLIENT_ID", ""),
        client_secret=_get_str_env("LISTS_AUTH_CLIENT_SECRET", ""),
        environment=environment,
        token_url=_get_str_env("LISTS_AUTH_TOKEN_URL", DEFAULT_TOKEN_URL),
        scope=_get_str_env("LISTS_AUTH_SCOPE", DEFAULT_TOKEN_SCOPE),
        ui_url=_get_str_env("LISTS_UI_URL", default_ui_url).rstrip("/"),
    )


@lru_cache(maxsize=1)
def get_slack_settings() -> SlackSettings:
    """
    Return Slack settings from environment variables.
    """

    return SlackSettings(
        bot_token=_get_str_env("SLACK_BOT_TOKEN", ""),
        signing_secret=_get_str_env("SLACK_SIGNING_SECRET", ""),
        channel_id=_get_str_env("SLACK_CHANNEL_ID", ""),
    )


@lru_cache(maxsize=1)
def get_polling_settings() -> PollingSettings:
    """
    Return ingest polling settings from environment variables.
    """

    return PollingSettings(
        interval_seconds=max(0.0, _get_float_env("INGEST_POLL_INTERVAL_SECONDS", 5.0)),
        max_attempts=max(1, _get_int_env("INGEST_POLL_MAX_ATTEMPTS", 120)),
    )


@lru_cache(maxsize=1)
def get_import_settings() -> ImportSettings:
    """
    Return repository layout settings from environment variables.
    """

    return ImportSettings(
        import_root=_get_str_env("IMPORT_ROOT", "imported_GoogleSheets").strip("/"),
        drs_config_path=_get_str_env("DRS_CONFIG_PATH", "drs.json"),
    )
