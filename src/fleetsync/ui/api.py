"""HTTP surface: one ``POST /jobs/<job>`` endpoint per job.

Endpoints are plain (sync) functions so FastAPI runs them in its threadpool; the
jobs drive their own event loops for provider I/O.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from fleetsync import __version__, app as jobs
from fleetsync.domain.clock import utcnow
from fleetsync.domain.errors import LockContentionError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fleetsync.config.sync import SyncConfig
    from fleetsync.domain.clock import Clock
    from fleetsync.domain.ports import (
        CatalogSource,
        ModelProbe,
        RumorSource,
        ShipSource,
        UnitOfWorkFactory,
    )

log = getLogger(__name__)


@dataclass(slots=True)
class JobDependencies:
    """Adapters and settings handed to every job; ``None`` means the configured default."""

    unit_of_work_factory: UnitOfWorkFactory | None = None
    config: SyncConfig | None = None
    clock: Clock = utcnow
    ship_sources: Sequence[ShipSource] | None = None
    catalog: CatalogSource | None = None
    rumor_sources: Sequence[RumorSource] | None = None
    probe: ModelProbe | None = None
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    def common(self) -> dict[str, Any]:
        return {
            "unit_of_work_factory": self.unit_of_work_factory,
            "config": self.config,
            "clock": self.clock,
        }


class JobRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ShipsSyncRequest(JobRequest):
    force: bool = False
    auto_sync: bool = False


class ShipDataOverrideRequest(JobRequest):
    entity_key: str = Field(validation_alias=AliasChoices("entity_key", "ship_slug"))
    preferred_source: str
    reason: str | None = None
    clear_cache: bool = False
    set_by: str | None = None


class SlugProbeRequest(JobRequest):
    probe_key: str = ""


class RumorConfirmRequest(JobRequest):
    rumor_id: str
    ship_slug: str
    actor: str = "admin"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _run(job_name: str, call: Callable[[], dict[str, Any]]) -> JSONResponse:
    try:
        result = call()
    except ValidationError as exc:
        return _error(400, str(exc))
    except LockContentionError as exc:
        return _error(409, str(exc))
    except Exception as exc:  # noqa: BLE001
        log.exception(f"Job {job_name} failed")
        return _error(500, str(exc) or type(exc).__name__)
    if result.get("success") is False:
        log.error(f"Job {job_name} reported failure: {result.get('error')}")
        return JSONResponse(status_code=500, content=result)
    return JSONResponse(content=result)


def create_app(dependencies: JobDependencies | None = None) -> FastAPI:
    deps = dependencies or JobDependencies()
    api = FastAPI(title="fleetsync", version=__version__)
    api.add_middleware(
        CORSMiddleware,
        allow_origins=deps.cors_origins,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @api.exception_handler(RequestValidationError)
    async def _bad_request(  # pyright: ignore[reportUnusedFunction]
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        _ = request
        return _error(400, f"Invalid request body: {exc.errors()}")

    @api.options("/{path:path}")
    def preflight(path: str) -> Response:  # pyright: ignore[reportUnusedFunction]
        _ = path
        return Response(status_code=200)

    @api.post("/jobs/ships-sync")
    def ships_sync(  # pyright: ignore[reportUnusedFunction]
        body: ShipsSyncRequest | None = None,
    ) -> JSONResponse:
        request = body or ShipsSyncRequest()
        return _run(
            "ships-sync",
            lambda: jobs.sync_ships_job(
                force=request.force,
                auto_sync=request.auto_sync,
                sources=deps.ship_sources,
                **deps.common(),
            ),
        )

    @api.post("/jobs/cache-refresh")
    def cache_refresh() -> JSONResponse:  # pyright: ignore[reportUnusedFunction]
        return _run(
            "cache-refresh",
            lambda: jobs.refresh_provider_cache(catalog=deps.catalog, **deps.common()),
        )

    @api.post("/jobs/rumor-sync")
    def rumor_sync() -> JSONResponse:  # pyright: ignore[reportUnusedFunction]
        return _run(
            "rumor-sync",
            lambda: jobs.sync_rumors_job(sources=deps.rumor_sources, **deps.common()),
        )

    @api.post("/jobs/cleanup")
    def cleanup() -> JSONResponse:  # pyright: ignore[reportUnusedFunction]
        return _run("cleanup", lambda: jobs.run_cleanup(**deps.common()))

    @api.post("/jobs/cleanup-old-news")
    def cleanup_old_news() -> JSONResponse:  # pyright: ignore[reportUnusedFunction]
        return _run("cleanup-old-news", lambda: jobs.cleanup_old_news(**deps.common()))

    @api.post("/jobs/flight-ready-news")
    def flight_ready_news() -> JSONResponse:  # pyright: ignore[reportUnusedFunction]
        return _run("flight-ready-news", lambda: jobs.announce_flight_ready_job(**deps.common()))

    @api.post("/jobs/ship-data-override")
    def ship_data_override(  # pyright: ignore[reportUnusedFunction]
        body: ShipDataOverrideRequest,
    ) -> JSONResponse:
        return _run(
            "ship-data-override",
            lambda: jobs.override_ship_source(
                entity_key=body.entity_key,
                preferred_source=body.preferred_source,
                reason=body.reason,
                clear_cache=body.clear_cache,
                set_by=body.set_by,
                **deps.common(),
            ),
        )

    @api.post("/jobs/slug-probe")
    def slug_probe(  # pyright: ignore[reportUnusedFunction]
        body: SlugProbeRequest | None = None,
    ) -> JSONResponse:
        probe_key = body.probe_key if body else ""
        return _run(
            "slug-probe",
            lambda: jobs.probe_slug(probe_key, probe=deps.probe, **deps.common()),
        )

    @api.post("/jobs/rumor-confirm")
    def rumor_confirm(  # pyright: ignore[reportUnusedFunction]
        body: RumorConfirmRequest,
    ) -> JSONResponse:
        return _run(
            "rumor-confirm",
            lambda: jobs.confirm_rumor_job(
                rumor_id=body.rumor_id,
                ship_slug=body.ship_slug,
                actor=body.actor,
                **deps.common(),
            ),
        )

    return api
