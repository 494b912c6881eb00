"""Celery tasks for product enrichment retries."""

import logging

from sqlalchemy.orm import Session

from larder.celery_app import app as celery_app
from larder.database import SessionLocal
from larder.services.product_service import ProductService

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3)
def retry_product_enrichment(self) -> dict:
    """Retry Open Food Facts lookups for products saved without API data.

    Runs periodically via celery-beat. Each product is retried until it is
    enriched or reaches the configured attempt cap.

    Returns:
        dict with the number of products enriched in this run
    """
    db: Session = SessionLocal()
    try:
        enriched = ProductService(db).retry_api_enrichment()
        return {"enriched": enriched}
    except Exception as e:
        logger.error(f"Product enrichment run failed: {e}")
        db.rollback()
        raise self.retry(exc=e, countdown=60) from e
    finally:
        db.close()
