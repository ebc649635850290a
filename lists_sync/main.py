from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI

from lists_sync.logging_utils import configure_logging
from lists_sync.schemas.health import HealthResponse


def _validate_env() -> None:
    """
    Validate all required environment variables at startup.

    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - No empty-string values are accepted for required variables.
    - GITHUB_REPO must be in ``owner/repo`` form.
    - LISTS_ENVIRONMENT, when set, must be ``test`` or ``prod``.
    """

    from lists_sync.config import load_env_files, missing_required_env, resolve_lists_environment

    load_env_files()

    errors: list[str] = []

    for name in missing_required_env():
        errors.append(f"{name} is not set. Empty strings are not permitted.")

    # --- GITHUB_REPO ----------------------------------------------------
    repo = os.getenv("GITHUB_REPO", "").strip()
    if repo:
        owner, _, name = repo.partition("/")
        if not owner or not name or "/" in name:
            errors.append(f"GITHUB_REPO='{repo}' is not valid. Expected 'owner/repo'.")

    # --- LISTS_ENVIRONMENT ----------------------------------------------
    try:
        resolve_lists_environment(
            os.getenv("LISTS_ENVIRONMENT", "").strip() or None,
            os.getenv("LISTS_API_ENDPOINT", ""),
        )
    except RuntimeError as exc:
        errors.append(str(exc))

    if errors:
        raise RuntimeError(
            "Startup validation failed, missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Load the initial drs.json mapping on boot; stop in-flight polling on exit."""
    from lists_sync.config import get_github_settings, get_lists_api_settings
    from lists_sync.errors import ConfigLoadError
    from lists_sync.services.config_resolver import get_configuration_resolver
    from lists_sync.services.ingestion_pipeline import get_shutdown_event

    log = logging.getLogger(__name__)
    owner, repo = get_github_settings().owner_and_name
    try:
        dr_map = get_configuration_resolver().load_initial(owner, repo)
    except ConfigLoadError as exc:
        log.critical("Failed to load initial mapping repo=%s/%s error=%s", owner, repo, exc)
        raise RuntimeError(f"Initial configuration load failed: {exc}") from exc

    log.info(
        "Lists sync ready environment=%s prod_lists=%s test_lists=%s",
        get_lists_api_settings().environment,
        len(dr_map.prod),
        len(dr_map.test),
    )
    try:
        yield
    finally:
        get_shutdown_event().set()
        log.info("Shutdown event set; in-flight ingest polling will stop")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    configure_logging()

    application = FastAPI(
        title="Lists Sync",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from lists_sync.api.routers import slack_router, webhook_router
    from lists_sync.config import get_lists_api_settings
    from lists_sync.services.config_resolver import get_dr_map_store

    application.include_router(webhook_router)
    application.include_router(slack_router)

    @application.get("/health", response_model=HealthResponse)
    def healthcheck() -> HealthResponse:
        dr_map = get_dr_map_store().current()
        return HealthResponse(
            timestamp=datetime.now(timezone.utc),
            lists_environment=get_lists_api_settings().environment,
            list_counts={"prod": len(dr_map.prod), "test": len(dr_map.test)},
        )

    return application


app = create_app()
