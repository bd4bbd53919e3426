"""Stage recorder: validates and persists one stage submission.

Each ``record_*`` call:
  - attributes the new row to the authenticated actor (never to an owner
    id sent by the client),
  - checks the referenced Collector exists (downstream stages only),
  - commits the row before returning it,
  - returns the row plus the QR token the next stage will scan.

The commit happens here, before the route builds its response: a token is
only handed out for a row that is stored.  A failed commit rolls back and
raises StorageError.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from herbtrace.auth.deps import Actor
from herbtrace.middleware.exceptions import NotFoundError, StorageError, ValidationError
from herbtrace.models.collector import Collector
from herbtrace.models.lab_test import LabTest
from herbtrace.models.processing import Processing
from herbtrace.models.product_batch import ProductBatch
from herbtrace.models.transport import Transport
from herbtrace.schemas.product_batch import ProductBatchCreate
from herbtrace.schemas.stages import (
    CollectorCreate,
    LabTestCreate,
    ProcessingCreate,
    TransportCreate,
)
from herbtrace.utils import qr

logger = logging.getLogger(__name__)

DEFAULT_WEIGHT_PER_PRODUCT = 1.0
DEFAULT_BATCH_LOCATION = "Default Location"


async def _require_collector(db: AsyncSession, collector_id: str) -> Collector:
    try:
        collector = await db.get(Collector, collector_id)
    except SQLAlchemyError as exc:
        raise StorageError() from exc
    if collector is None:
        raise NotFoundError("Collector", collector_id)
    return collector


async def _persist(db: AsyncSession, row) -> None:
    db.add(row)
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        logger.error("Failed to persist %s", type(row).__name__, exc_info=True)
        await db.rollback()
        raise StorageError() from exc


# ── Collector ────────────────────────────────────────────────

async def record_collector(body: CollectorCreate, actor: Actor, db: AsyncSession) -> dict:
    """Create the root record of a new chain.

    Returns:
        {"record": Collector, "qr_token": <collector id>}
    """
    collector = Collector(
        user_id=actor.id,
        species=body.species,
        quantity=body.quantity,
        farming_type=body.farming_type,
        plant_part=body.plant_part,
        lat=body.location.lat if body.location else None,
        lng=body.location.lng if body.location else None,
        sensors=body.sensors.model_dump() if body.sensors else None,
    )
    await _persist(db, collector)

    logger.info(
        "Collector %s recorded by %s: %s %.2f (%s)",
        collector.id, actor.username, collector.species, collector.quantity,
        collector.plant_part.value,
    )
    return {"record": collector, "qr_token": qr.collector_token(collector.id)}


# ── Transport ────────────────────────────────────────────────

async def record_transport(body: TransportCreate, actor: Actor, db: AsyncSession) -> dict:
    """Record one transport leg. The QR token passes the collector id through."""
    await _require_collector(db, body.collector_id)

    transport = Transport(
        collector_id=body.collector_id,
        transporter_id=actor.id,
        quantity_kg=body.quantity_kg,
        lat=body.location.lat,
        lng=body.location.lng,
        destination=body.destination,
    )
    await _persist(db, transport)

    logger.info(
        "Transport %s recorded by %s for collector %s → %s",
        transport.id, actor.username, transport.collector_id, transport.destination,
    )
    return {"record": transport, "qr_token": qr.collector_token(body.collector_id)}


# ── Processing ───────────────────────────────────────────────

async def record_processing(body: ProcessingCreate, actor: Actor, db: AsyncSession) -> dict:
    await _require_collector(db, body.collector_id)

    if body.processed_quantity_kg > body.received_quantity_kg:
        # Accepted as submitted; only the form blocks this
        logger.warning(
            "Processing for collector %s reports %.2f kg processed from %.2f kg received",
            body.collector_id, body.processed_quantity_kg, body.received_quantity_kg,
        )

    processing = Processing(
        collector_id=body.collector_id,
        processor_id=actor.id,
        received_quantity_kg=body.received_quantity_kg,
        processed_quantity_kg=body.processed_quantity_kg,
        processing_type=body.processing_type,
        lat=body.location.lat,
        lng=body.location.lng,
    )
    await _persist(db, processing)

    logger.info(
        "Processing %s recorded by %s for collector %s (%s)",
        processing.id, actor.username, processing.collector_id,
        processing.processing_type.value,
    )
    return {"record": processing, "qr_token": qr.collector_token(body.collector_id)}


# ── Lab testing ──────────────────────────────────────────────

async def record_lab_test(body: LabTestCreate, actor: Actor, db: AsyncSession) -> dict:
    """Record a lab test. Its QR token is the prefixed lab test id."""
    await _require_collector(db, body.collector_id)

    lab_test = LabTest(
        collector_id=body.collector_id,
        lab_technician_id=actor.id,
        tested_quantity_kg=body.tested_quantity_kg,
        test_type=body.test_type,
        result=body.result,
        certificate_links=list(body.certificate_links),
        lat=body.location.lat,
        lng=body.location.lng,
    )
    await _persist(db, lab_test)

    logger.info(
        "Lab test %s recorded by %s for collector %s (%s)",
        lab_test.id, actor.username, lab_test.collector_id, lab_test.test_type.value,
    )
    return {"record": lab_test, "qr_token": qr.lab_test_token(lab_test.id)}


# ── Product batch ────────────────────────────────────────────

async def create_product_batch(
    body: ProductBatchCreate,
    actor: Actor,
    db: AsyncSession,
) -> dict:
    """Assemble a manufactured product batch from lab-tested lots.

    Returns:
        {"record": ProductBatch, "qr_token": <JSON payload string>}

    Raises:
        ValidationError if no lab test is selected, the veda is missing,
        or any selected id is not an existing lab test.
    """
    batch_ids = list(dict.fromkeys(i for i in body.batch_ids if i))
    if not batch_ids:
        raise ValidationError("Select at least one batch", fields=["batchIds"])
    if body.veda_used is None:
        raise ValidationError("Select veda used", fields=["vedaUsed"])

    try:
        result = await db.execute(select(LabTest).where(LabTest.id.in_(batch_ids)))
    except SQLAlchemyError as exc:
        raise StorageError() from exc
    lab_tests = list(result.scalars().all())
    if len(lab_tests) != len(batch_ids):
        raise ValidationError("Some batches are invalid", fields=["batchIds"])

    # Zero counts as unset, same as an omitted value
    quantity = body.quantity or sum(lab.tested_quantity_kg for lab in lab_tests)

    batch = ProductBatch(
        manufacturer_id=actor.id,
        product_name=body.product_name,
        quantity=quantity,
        weight_per_product=body.weight_per_product or DEFAULT_WEIGHT_PER_PRODUCT,
        location=body.location or DEFAULT_BATCH_LOCATION,
        veda_used=body.veda_used,
        lab_tests=sorted(lab_tests, key=lambda lab: lab.timestamp),
    )
    await _persist(db, batch)

    logger.info(
        "Product batch %s (%s) created by %s from %d lab test(s)",
        batch.id, batch.product_name, actor.username, len(lab_tests),
    )
    return {
        "record": batch,
        "qr_token": qr.product_batch_payload(batch.id, actor.id),
    }
