import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from relgraph.api.endpoints import get_endpoints_router
from relgraph.graph.view import GraphView
from relgraph.ingestion.orchestrator import SyncOrchestrator


async def run_ticker(orchestrator: SyncOrchestrator, view: GraphView, interval: float) -> None:
    """Flush quiet edits and advance the layout, once per frame."""
    while True:
        try:
            orchestrator.flush_due()
            view.frame()
        except Exception as e:
            logger.exception(f"Error in graph ticker: {e}")
        await asyncio.sleep(interval)


def create_app(
    *,
    orchestrator: SyncOrchestrator,
    view: GraphView,
    tick_interval_seconds: float = 1 / 30,
) -> FastAPI:
    """Create FastAPI app."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ticker = asyncio.create_task(run_ticker(orchestrator, view, tick_interval_seconds))
        logger.info("Graph ticker started")
        try:
            yield
        finally:
            ticker.cancel()
            try:
                await ticker
            except asyncio.CancelledError:
                pass
            view.close()
            logger.info("Graph ticker stopped")

    app = FastAPI(lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router=get_endpoints_router(orchestrator=orchestrator, view=view))

    return app
