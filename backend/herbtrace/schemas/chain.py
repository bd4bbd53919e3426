"""Response shapes produced by the chain assembler."""

from herbtrace.schemas.common import CamelModel
from herbtrace.schemas.product_batch import ProductBatchOut
from herbtrace.schemas.stages import CollectorOut, LabTestOut, ProcessingOut, TransportOut


class ChainOut(CamelModel):
    """A collector-rooted chain: GET /chains/{id}."""
    collector: CollectorOut
    transport: list[TransportOut] = []
    processing: ProcessingOut | None = None
    lab: LabTestOut | None = None


class LabTraceOut(ChainOut):
    """GET /trace/lab/{id} — same chain, rooted at a lab test."""
    lab: LabTestOut


class ChainSummary(ChainOut):
    """One row of the dashboard listing: GET /chains."""
    id: str
    completed: bool


class ProductBatchTraceOut(CamelModel):
    """GET /trace/product-batch/{batchId}.

    Transport and processing rows are flat lists; callers group them by
    ``collectorId``.
    """
    product_batch: ProductBatchOut
    collectors: list[CollectorOut] = []
    transport: list[TransportOut] = []
    processing: list[ProcessingOut] = []
