"""Collector — the root of every chain.

One row per harvest submitted by a collector.  Its id is the QR payload the
transporter, processing plant and lab scan to link their own records.
Rows are never updated after creation.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum as SAEnum, Float, ForeignKey, Index, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from herbtrace.database import Base
from herbtrace.models.enums import FarmingType, PlantPart


class Collector(Base):
    __tablename__ = "collectors"
    __table_args__ = (
        # Listing by species, newest first
        Index("ix_collectors_species_timestamp", "species", "timestamp"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )

    # ── Harvest ──────────────────────────────────────────────
    species: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    farming_type: Mapped[FarmingType] = mapped_column(SAEnum(FarmingType), nullable=False)
    plant_part: Mapped[PlantPart] = mapped_column(SAEnum(PlantPart), nullable=False)

    # ── Where (optional; both or neither) ────────────────────
    lat: Mapped[float | None] = mapped_column(Float)
    lng: Mapped[float | None] = mapped_column(Float)

    # JSON: {"temperature": "24", "humidity": "61%", "soil_moisture": null, "ph": "6.8"}
    sensors: Mapped[dict | None] = mapped_column(JSON)

    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
