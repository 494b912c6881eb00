"""Celery application configuration."""

from celery import Celery

from larder.config import get_settings

settings = get_settings()

app = Celery(
    "larder",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["larder.tasks.enrichment"],
)

# Celery configuration
app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=600,  # 10 minutes max per task
    task_soft_time_limit=540,
    beat_schedule={
        "retry-product-enrichment": {
            "task": "larder.tasks.enrichment.retry_product_enrichment",
            "schedule": settings.enrichment_retry_interval_minutes * 60.0,
        },
    },
)
