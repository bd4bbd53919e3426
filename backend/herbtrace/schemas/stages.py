"""Pydantic schemas for stage submissions (collector → transport →
processing → lab testing) and their stored representations.

Owner references are never read from the request body: fields such as
``userId`` or ``transporter`` are silently ignored and the authenticated
actor is used instead.
"""

from datetime import datetime

from pydantic import ConfigDict, Field, model_validator

from herbtrace.models.enums import FarmingType, PlantPart, ProcessingType, TestType
from herbtrace.schemas.common import CamelModel, GeoPoint, NonBlankStr


class SensorReadings(CamelModel):
    """Free-form field sensor values; numbers are kept as strings."""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    temperature: str | None = None
    humidity: str | None = None
    soil_moisture: str | None = None
    ph: str | None = Field(None, alias="pH")


# ── Submissions ──────────────────────────────────────────────

class CollectorCreate(CamelModel):
    """Payload for POST /collector."""
    species: NonBlankStr = Field(..., max_length=200)
    quantity: float = Field(..., gt=0)
    farming_type: FarmingType
    plant_part: PlantPart

    location: GeoPoint | None = None
    sensors: SensorReadings | None = None


class TransportCreate(CamelModel):
    """Payload for POST /transport. ``collectorId`` comes from the scanned QR."""
    collector_id: NonBlankStr
    quantity_kg: float = Field(..., gt=0)
    location: GeoPoint
    destination: NonBlankStr = Field(..., max_length=255)


class ProcessingCreate(CamelModel):
    """Payload for POST /processing.

    ``processedQuantityKg`` larger than ``receivedQuantityKg`` is accepted:
    the check lives in the frontend form only.
    """
    collector_id: NonBlankStr
    received_quantity_kg: float = Field(..., gt=0)
    processed_quantity_kg: float = Field(..., gt=0)
    processing_type: ProcessingType
    location: GeoPoint


class LabTestCreate(CamelModel):
    """Payload for POST /labtesting."""
    collector_id: NonBlankStr
    tested_quantity_kg: float = Field(..., gt=0)
    test_type: TestType
    result: NonBlankStr
    certificate_links: list[NonBlankStr] = []
    location: GeoPoint


# ── Stored records ───────────────────────────────────────────

class _StageOut(CamelModel):
    location: GeoPoint | None = None

    @model_validator(mode="before")
    @classmethod
    def _nest_location(cls, data):
        # ORM rows store lat/lng as two columns; read into a copy, never the row
        if isinstance(data, dict) or not hasattr(data, "lat"):
            return data
        values = {
            name: getattr(data, name)
            for name in cls.model_fields
            if name != "location" and hasattr(data, name)
        }
        lat, lng = data.lat, data.lng
        values["location"] = (
            {"lat": lat, "lng": lng} if lat is not None and lng is not None else None
        )
        return values


class CollectorOut(_StageOut):
    id: str
    user_id: str
    username: str | None = None
    species: str
    quantity: float
    farming_type: FarmingType
    plant_part: PlantPart
    sensors: SensorReadings | None = None
    timestamp: datetime


class TransportOut(_StageOut):
    id: str
    collector_id: str
    transporter_id: str
    transporter_name: str | None = None
    quantity_kg: float
    destination: str
    timestamp: datetime


class ProcessingOut(_StageOut):
    id: str
    collector_id: str
    processor_id: str
    processor_name: str | None = None
    received_quantity_kg: float
    processed_quantity_kg: float
    processing_type: ProcessingType
    timestamp: datetime


class LabTestOut(_StageOut):
    id: str
    collector_id: str
    lab_technician_id: str
    lab_technician_name: str | None = None
    tested_quantity_kg: float
    test_type: TestType
    result: str
    certificate_links: list[str] = []
    timestamp: datetime


# ── Submission responses ─────────────────────────────────────

class _StageResponse(CamelModel):
    message: str
    qr_token: str
    qr_code_url: str


class CollectorResponse(_StageResponse):
    collector: CollectorOut


class TransportResponse(_StageResponse):
    transport: TransportOut


class ProcessingResponse(_StageResponse):
    processing: ProcessingOut


class LabTestResponse(_StageResponse):
    lab_test: LabTestOut
