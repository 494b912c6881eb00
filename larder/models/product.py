"""Product catalog model."""

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String

from larder.database import Base
from larder.models.enums import ProductDataSource
from larder.models.mixins import TimestampMixin


class Product(Base, TimestampMixin):
    """Catalog product identified by UPC, optionally enriched from Open Food Facts."""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    upc = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    brand = Column(String(255), nullable=True)
    category = Column(String(255), nullable=True)
    default_expiration_days = Column(Integer, nullable=True)
    data_source = Column(
        Enum(ProductDataSource, native_enum=False, length=30),
        nullable=False,
        default=ProductDataSource.MANUAL,
    )

    # Enrichment retry bookkeeping
    requires_api_retry = Column(Boolean, nullable=False, default=False)
    retry_attempts = Column(Integer, nullable=False, default=0)
    last_retry_attempt = Column(DateTime(timezone=True), nullable=True)
