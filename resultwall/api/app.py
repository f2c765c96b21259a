"""FastAPI app, CORS, and route registration."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Configure logging in the worker process (so sequencer/feed INFO logs are visible with uvicorn --reload)
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(name)s: %(message)s",
)

from resultwall.api.state import AppState, get_state
from resultwall.config import FEED_POLL_INTERVAL_SEC, ensure_data_dir

# Import routes after state to avoid circular imports
from resultwall.api.routes import analytics, feed, gallery, records

__all__ = ["app", "AppState", "get_state"]

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    state = get_state()
    ensure_data_dir()
    # History must be seeded before any incremental event is consumed
    state.seed_history()
    state.sequencer.start()
    state.feed.start_polling(interval_sec=FEED_POLL_INTERVAL_SEC)
    logger.info("Change feed polling started (interval %.1fs)", FEED_POLL_INTERVAL_SEC)

    yield

    state.feed.stop_polling()
    state.sequencer.stop()
    state.gate.shutdown()


app = FastAPI(
    title="Results Wall API",
    description="Live gallery of approved results with one-at-a-time announcements",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(gallery.router, prefix="/api/gallery", tags=["gallery"])
app.include_router(feed.router, prefix="/api/feed", tags=["feed"])
app.include_router(records.router, prefix="/api/records", tags=["records"])
app.include_router(analytics.router, prefix="/api/analytics", tags=["analytics"])
