"""Tests for the product enrichment Celery task."""

from unittest.mock import MagicMock, patch

import pytest

from larder.celery_app import app as celery_app
from larder.tasks.enrichment import retry_product_enrichment


def test_beat_schedule_registers_enrichment():
    """Test the periodic retry is scheduled."""
    entry = celery_app.conf.beat_schedule["retry-product-enrichment"]
    assert entry["task"] == "larder.tasks.enrichment.retry_product_enrichment"
    assert entry["schedule"] == 3600.0


def test_retry_product_enrichment_reports_count():
    """Test the task runs one enrichment pass and closes its session."""
    session = MagicMock()
    with (
        patch("larder.tasks.enrichment.SessionLocal", return_value=session),
        patch("larder.tasks.enrichment.ProductService") as service_cls,
    ):
        service_cls.return_value.retry_api_enrichment.return_value = 3
        result = retry_product_enrichment.run()

    assert result == {"enriched": 3}
    service_cls.assert_called_once_with(session)
    session.close.assert_called_once()


def test_retry_product_enrichment_retries_on_failure():
    """Test unexpected failures roll back and schedule a Celery retry."""
    session = MagicMock()
    with (
        patch("larder.tasks.enrichment.SessionLocal", return_value=session),
        patch("larder.tasks.enrichment.ProductService") as service_cls,
        patch.object(
            retry_product_enrichment, "retry", return_value=RuntimeError("retrying")
        ) as retry,
    ):
        service_cls.return_value.retry_api_enrichment.side_effect = ConnectionError("db down")
        with pytest.raises(RuntimeError, match="retrying"):
            retry_product_enrichment.run()

    session.rollback.assert_called_once()
    session.close.assert_called_once()
    assert retry.call_args.kwargs["countdown"] == 60
