"""HTTP surface for sysdash."""

from contextlib import asynccontextmanager

import structlog
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from sysdash import views
from sysdash.assembler import SnapshotAssembler
from sysdash.config import Settings, settings as default_settings
from sysdash.errors import SysdashError, sysdash_error_handler
from sysdash.history import HistoryBuffer
from sysdash.monitor import MIN_INTERVAL_MS, PollingScheduler
from sysdash.providers import PsutilProvider, SampleProvider

logger = structlog.get_logger()

router = APIRouter(prefix="/api/system", tags=["system"])


class RefreshRateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    interval_ms: int = Field(..., alias="intervalMs", ge=MIN_INTERVAL_MS)


def _assembler(request: Request) -> SnapshotAssembler:
    return request.app.state.assembler


def _scheduler(request: Request) -> PollingScheduler:
    return request.app.state.scheduler


def _settings(request: Request) -> Settings:
    return request.app.state.settings


@router.get("/info")
def system_info(request: Request) -> dict:
    return views.system_info_view(_assembler(request).system_info())


@router.get("/cpu")
def cpu(request: Request) -> dict:
    snapshot, samples = _assembler(request).cpu()
    return views.cpu_view(snapshot, samples)


@router.get("/memory")
def memory(request: Request) -> dict:
    return views.memory_view(_assembler(request).memory())


@router.get("/uptime")
def uptime(request: Request) -> dict:
    return views.uptime_view(_assembler(request).uptime())


@router.get("/load")
def load(request: Request) -> dict:
    assembler = _assembler(request)
    return {"average": views.load_view(assembler.load()), "cores": assembler.cores()}


@router.get("/disk")
def disk(request: Request) -> dict:
    """Disk usage of the primary volume. 500 when the provider fails."""
    return views.disk_view(_assembler(request).disk())


@router.get("/network")
def network(request: Request) -> dict:
    return views.network_view(_assembler(request).network())


@router.get("/health")
def health(request: Request) -> dict:
    return views.health_view(_assembler(request).health())


@router.get("/history")
def history(request: Request) -> dict:
    assembler = _assembler(request)
    return views.history_view(assembler.history(), assembler.history_buffer.capacity)


@router.get("/processes")
def processes(request: Request) -> list[dict]:
    """Top processes by CPU, then memory. 500 when the provider fails."""
    limit = _settings(request).sysdash_process_limit
    return [views.process_view(p) for p in _assembler(request).processes(limit)]


@router.get("/all")
def all_stats(request: Request) -> dict:
    """Full snapshot. Records a history point as a side effect."""
    return views.full_snapshot_view(_assembler(request).collect())


@router.get("/refresh-rate")
def get_refresh_rate(request: Request) -> dict:
    scheduler = _scheduler(request)
    return {"intervalMs": scheduler.interval_ms, "state": scheduler.state.value}


@router.put("/refresh-rate")
def set_refresh_rate(body: RefreshRateRequest, request: Request) -> dict:
    scheduler = _scheduler(request)
    scheduler.set_interval(body.interval_ms)
    return {"intervalMs": scheduler.interval_ms, "state": scheduler.state.value}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start background polling if configured; release resources on shutdown."""
    cfg: Settings = app.state.settings
    scheduler: PollingScheduler = app.state.scheduler
    if cfg.sysdash_background_poll:
        scheduler.start(cfg.sysdash_poll_interval_ms)
    logger.info("sysdash_api_started", background_poll=cfg.sysdash_background_poll)
    yield
    scheduler.stop()
    app.state.assembler.close()


def create_app(
    provider: SampleProvider | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the FastAPI application around one SnapshotAssembler."""
    cfg = settings or default_settings
    assembler = SnapshotAssembler(
        provider or PsutilProvider(cfg.sysdash_disk_path),
        history=HistoryBuffer(cfg.sysdash_history_size),
        enrichment_timeout=cfg.sysdash_enrichment_timeout,
        snapshot_process_limit=cfg.sysdash_snapshot_process_limit,
    )

    app = FastAPI(title="sysdash", version="0.1.0", lifespan=lifespan)
    app.state.settings = cfg
    app.state.assembler = assembler
    app.state.scheduler = PollingScheduler(assembler, interval_ms=cfg.sysdash_poll_interval_ms)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(SysdashError, sysdash_error_handler)
    app.include_router(router)
    return app
