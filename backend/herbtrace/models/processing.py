import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum as SAEnum, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from herbtrace.database import Base
from herbtrace.models.enums import ProcessingType


class Processing(Base):
    __tablename__ = "processings"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    collector_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("collectors.id"), nullable=False, index=True
    )
    processor_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False
    )

    # processed may exceed received: not checked at this layer
    received_quantity_kg: Mapped[float] = mapped_column(Float, nullable=False)
    processed_quantity_kg: Mapped[float] = mapped_column(Float, nullable=False)
    processing_type: Mapped[ProcessingType] = mapped_column(
        SAEnum(ProcessingType), nullable=False
    )

    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)

    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
