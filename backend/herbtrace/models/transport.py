import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from herbtrace.database import Base


class Transport(Base):
    """One leg of transport for a collected batch.

    A collector record may have any number of transport legs; concurrent
    submissions are not de-duplicated.
    """

    __tablename__ = "transports"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    collector_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("collectors.id"), nullable=False, index=True
    )
    transporter_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False
    )

    quantity_kg: Mapped[float] = mapped_column(Float, nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    destination: Mapped[str] = mapped_column(String(255), nullable=False)

    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
