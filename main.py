from fastapi import FastAPI
from contextlib import asynccontextmanager
from typing import Optional
import uvicorn
import logging
import os
from pathlib import Path

from clients.kafka import KafkaClient
from config import load_settings
from db.migrate import apply_migrations
from routers.appeals import router as appeals_router
from routers.ingestion import router as ingestion_router
from routers.moderation import router as moderation_router
from routers.queue import router as queue_router
from routers.reports import router as reports_router
from services.container import Services, build_services

logging.basicConfig(level=logging.INFO)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "db"


def create_app(services: Optional[Services] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if services is None:
            # ConfigurationError propagates: the app must not start without an assessment endpoint
            settings = load_settings()
            try:
                apply_migrations(MIGRATIONS_DIR, settings.db_dsn)
            except Exception as exc:
                logging.exception("Failed to apply migrations: %s", exc)
                raise
            app.state.services = build_services(settings)
        else:
            app.state.services = services

        disable_kafka = os.getenv("DISABLE_KAFKA", "false").lower() == "true"
        kafka_client = None if disable_kafka else KafkaClient()
        app.state.kafka_client = kafka_client
        if kafka_client is not None:
            try:
                await kafka_client.start()
            except Exception as exc:
                logging.exception("Failed to start Kafka client: %s", exc)
                app.state.kafka_client = None
                kafka_client = None
        yield
        if kafka_client is not None:
            await kafka_client.stop()

    app = FastAPI(
        title="Content Moderation API",
        description="Moderation, escalation and appeals pipeline for user content",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.include_router(ingestion_router)
    app.include_router(reports_router)
    app.include_router(appeals_router)
    app.include_router(moderation_router)
    app.include_router(queue_router)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8003)
