import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum as SAEnum, Float, ForeignKey, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from herbtrace.database import Base
from herbtrace.models.enums import TestType


class LabTest(Base):
    __tablename__ = "lab_tests"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    collector_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("collectors.id"), nullable=False, index=True
    )
    lab_technician_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False
    )

    tested_quantity_kg: Mapped[float] = mapped_column(Float, nullable=False)
    test_type: Mapped[TestType] = mapped_column(SAEnum(TestType), nullable=False)
    result: Mapped[str] = mapped_column(Text, nullable=False)
    # JSON list of certificate URLs
    certificate_links: Mapped[list] = mapped_column(JSON, default=list)

    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)

    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
