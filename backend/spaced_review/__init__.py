from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spaced_review.config import settings
from spaced_review.db import init_all_databases


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_all_databases(settings.data_dir)
    yield
    from spaced_review.services.session_registry import clear_sessions

    clear_sessions()


def create_app() -> FastAPI:
    application = FastAPI(
        title="Spaced Review Backend", version="0.1.0", lifespan=lifespan
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from spaced_review.routers import cards, health, review, topics

    application.include_router(health.router)
    application.include_router(
        review.router, prefix="/review", tags=["review"]
    )
    application.include_router(
        cards.router, prefix="/cards", tags=["cards"]
    )
    application.include_router(
        topics.router, prefix="/topics", tags=["topics"]
    )

    return application


app = create_app()
