"""clk2 Server — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Store loaded (and pruned to the retention horizon) on startup via lifespan;
      an unreadable or corrupt store file aborts startup
    - CORS configured from settings (not hardcoded)

Design Decisions:
    - Lifespan over @app.on_event
    - Pruning result stays in memory; the next mutation writes it through
"""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clk2.api.error_handlers import register_error_handlers
from clk2.api.routes import health, rpc
from clk2.config import Settings, get_settings
from clk2.core.clock_store import ClockStore
from clk2.core.truncation import truncate_clockstore
from clk2.infrastructure.observability import setup_logging
from clk2.infrastructure.store_file import load_store
from clk2.services import clock_service as clock_service_module
from clk2.services.clock_service import init_clock_service, local_now

logger = logging.getLogger(__name__)


def load_pruned_store(settings: Settings) -> ClockStore:
    """Load the store file and drop history older than prune_days."""
    store = load_store(settings.store_location)
    now = local_now()
    pruned = truncate_clockstore(store, now - timedelta(days=settings.prune_days), now)
    dropped = (
        sum(len(c.events) for c in store) - sum(len(c.events) for c in pruned)
    )
    if dropped:
        logger.info(f"Pruned {dropped} event(s) older than {settings.prune_days} days")
    return pruned


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    store = load_pruned_store(settings)
    init_clock_service(store, settings.store_location)
    logger.info(
        f"clk2 server started with {len(store)} clock(s)",
        extra={"store_path": str(settings.store_location)},
    )
    yield
    clock_service_module.clock_service = None
    logger.info("clk2 server shutting down")


app = FastAPI(title="clk2", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["POST", "GET"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(rpc.router)

register_error_handlers(app)
