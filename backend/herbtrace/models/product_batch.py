"""ProductBatch — a manufactured product assembled from lab-tested lots.

A batch aggregates one or more LabTest records (many-to-many through
``product_batch_lab_tests``).  Walking batch → lab tests → collectors is the
entry point of the consumer view.
"""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Enum as SAEnum, Float, ForeignKey, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from herbtrace.database import Base
from herbtrace.models.enums import VedaUsed


product_batch_lab_tests = Table(
    "product_batch_lab_tests",
    Base.metadata,
    Column(
        "product_batch_id", String(36),
        ForeignKey("product_batches.id", ondelete="CASCADE"), primary_key=True,
    ),
    Column(
        "lab_test_id", String(36),
        ForeignKey("lab_tests.id"), primary_key=True, index=True,
    ),
)


class ProductBatch(Base):
    __tablename__ = "product_batches"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    manufacturer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )

    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    weight_per_product: Mapped[float] = mapped_column(Float, nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    veda_used: Mapped[VedaUsed] = mapped_column(SAEnum(VedaUsed), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Load with selectinload(); async sessions cannot lazy-load
    lab_tests = relationship(
        "LabTest", secondary=product_batch_lab_tests, order_by="LabTest.timestamp",
    )
