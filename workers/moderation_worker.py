import asyncio
import json
import logging
import os
from typing import Any

import psycopg
from aiokafka import AIOKafkaConsumer
from pydantic import ValidationError

from clients.kafka import KafkaClient, KAFKA_BOOTSTRAP_SERVERS, CONTENT_CREATED_TOPIC
from config import load_settings
from models.content import ContentCreatedEvent
from models.results import Err
from services.container import build_services
from services.moderation import ModerationService

logger = logging.getLogger(__name__)

MAX_RETRY_COUNT = int(os.getenv("MODERATION_MAX_RETRY_COUNT", "3"))
RETRY_DELAY_SECONDS = float(os.getenv("MODERATION_RETRY_DELAY_SECONDS", "1"))
TEMPORARY_ERRORS = (psycopg.OperationalError, ConnectionError, TimeoutError)


async def process_content_event(
    payload: dict[str, Any],
    moderation_service: ModerationService,
    kafka_client: KafkaClient,
) -> None:
    retry_count = int(payload.get("retry_count", 0))
    try:
        event = ContentCreatedEvent.model_validate(payload["event"])
    except (KeyError, TypeError, ValidationError) as exc:
        logger.warning("content_event_malformed error=%s", exc)
        await kafka_client.send_to_dlq(payload, f"malformed event: {exc}", retry_count=retry_count + 1)
        return

    try:
        result = await moderation_service.handle_content_created(event)
    except Exception as exc:
        is_temporary = isinstance(exc, TEMPORARY_ERRORS)
        if is_temporary and retry_count < MAX_RETRY_COUNT:
            logger.warning(
                "content_event_retry content_kind=%s retry_count=%s error=%s",
                event.content_kind,
                retry_count + 1,
                exc,
            )
            await asyncio.sleep(RETRY_DELAY_SECONDS)
            await kafka_client.send_content_created(event, retry_count=retry_count + 1)
            return

        logger.exception("content_event_failed content_kind=%s", event.content_kind)
        await kafka_client.send_to_dlq(payload, str(exc), retry_count=retry_count + 1)
        return

    if isinstance(result, Err):
        await kafka_client.send_to_dlq(payload, result.message, retry_count=retry_count + 1)
        return

    logger.info(
        "content_event_processed content_kind=%s outcome=%s degraded=%s",
        event.content_kind,
        result.value.outcome.value,
        result.degraded,
    )


async def run_worker() -> None:
    settings = load_settings()
    services = build_services(settings)

    consumer = AIOKafkaConsumer(
        CONTENT_CREATED_TOPIC,
        bootstrap_servers=KAFKA_BOOTSTRAP_SERVERS,
        value_deserializer=lambda value: json.loads(value.decode("utf-8")),
        group_id="moderation-worker-group",
        auto_offset_reset="earliest",
    )

    kafka_client = KafkaClient(KAFKA_BOOTSTRAP_SERVERS)

    await kafka_client.start()
    await consumer.start()
    try:
        async for message in consumer:
            await process_content_event(
                payload=message.value,
                moderation_service=services.moderation,
                kafka_client=kafka_client,
            )
    finally:
        await consumer.stop()
        await kafka_client.stop()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(run_worker())
