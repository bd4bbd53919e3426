"""Pydantic schemas for manufacturer product batches."""

from datetime import datetime

from pydantic import Field

from herbtrace.models.enums import PlantPart, TestType, VedaUsed
from herbtrace.schemas.common import CamelModel, NonBlankStr
from herbtrace.schemas.stages import LabTestOut


class ProductBatchCreate(CamelModel):
    """Payload for POST /api/product-batch.

    ``batchIds`` and ``vedaUsed`` are checked by the service so the
    frontend gets its own wording ("Select at least one batch").
    Quantity defaults to the sum of the selected tested quantities.
    """
    batch_ids: list[str] = []
    product_name: NonBlankStr = Field(..., max_length=255)
    quantity: float | None = Field(None, ge=0)
    weight_per_product: float | None = Field(None, ge=0)
    location: str | None = Field(None, max_length=255)
    veda_used: VedaUsed | None = None


class ProductBatchOut(CamelModel):
    id: str
    manufacturer_id: str
    manufacturer_name: str | None = None
    product_name: str
    quantity: float
    weight_per_product: float
    location: str
    veda_used: VedaUsed
    lab_tests: list[LabTestOut] = []
    created_at: datetime
    updated_at: datetime


class ProductBatchResponse(CamelModel):
    message: str
    product_batch: ProductBatchOut
    # JSON string: {"productBatchId": ..., "manufacturerId": ...}
    qr_payload: str
    qr_code_url: str


# ── Lab batches offered for composition ─────────────────────

class LabBatchCollector(CamelModel):
    id: str
    species: str
    plant_part: PlantPart
    quantity: float


class LabBatchItem(CamelModel):
    id: str
    lab_test_id: str
    collector_id: str
    collector: LabBatchCollector | None = None
    tested_quantity_kg: float
    test_type: TestType
    result: str
    created_at: datetime


class LabBatchList(CamelModel):
    batches: list[LabBatchItem]
