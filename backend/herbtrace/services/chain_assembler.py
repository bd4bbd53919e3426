"""Chain assembler: rebuilds a batch's path through the supply chain.

Entry points:
  assemble_collector_chain   collector id → {collector, transport[], processing, lab}
  trace_lab                  lab test id (bare or ``LabTestID:`` token) → same chain
  resolve_chain              id tried as a lab test, then as a collector
  trace_product_batch        product batch → lab tests → collectors → transport/processing
  list_chains                every collector with its stages (dashboard)
  list_lab_batches           lab tests offered to manufacturers, newest first

Owner references are resolved to usernames in one query per traversal.  A
user that no longer exists leaves the name ``None``; a missing root or
parent record raises NotFoundError.

When several processing or lab records reference the same collector, the
most recent one (by timestamp) is the chain's stage.  Transport legs are
returned oldest first.

Any database error aborts the traversal with StorageError: callers never
receive a partial chain.
"""

import functools
import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from herbtrace.middleware.exceptions import NotFoundError, StorageError
from herbtrace.models.collector import Collector
from herbtrace.models.lab_test import LabTest
from herbtrace.models.processing import Processing
from herbtrace.models.product_batch import ProductBatch
from herbtrace.models.transport import Transport
from herbtrace.models.user import User
from herbtrace.schemas.chain import ChainOut, ChainSummary, LabTraceOut, ProductBatchTraceOut
from herbtrace.schemas.product_batch import (
    LabBatchCollector,
    LabBatchItem,
    LabBatchList,
    ProductBatchOut,
)
from herbtrace.schemas.stages import CollectorOut, LabTestOut, ProcessingOut, TransportOut
from herbtrace.utils.qr import strip_lab_token

logger = logging.getLogger(__name__)

# row type → (owner id attribute, resolved name field, output schema)
_OWNER_FIELDS = {
    Collector: ("user_id", "username", CollectorOut),
    Transport: ("transporter_id", "transporter_name", TransportOut),
    Processing: ("processor_id", "processor_name", ProcessingOut),
    LabTest: ("lab_technician_id", "lab_technician_name", LabTestOut),
}


def storage_guarded(func):
    """Turn any SQLAlchemy failure inside a traversal into StorageError."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as exc:
            logger.error("Chain traversal %s failed", func.__name__, exc_info=True)
            raise StorageError() from exc

    return wrapper


# ── Helpers ──────────────────────────────────────────────────

async def _usernames(db: AsyncSession, user_ids: Iterable[str | None]) -> dict[str, str]:
    ids = {uid for uid in user_ids if uid}
    if not ids:
        return {}
    result = await db.execute(select(User.id, User.username).where(User.id.in_(ids)))
    return {row.id: row.username for row in result.all()}


def _owner_id(row) -> str:
    owner_attr, _, _ = _OWNER_FIELDS[type(row)]
    return getattr(row, owner_attr)


def _render(row, names: dict[str, str]):
    """Validate ``row`` into its output schema with the owner's name filled in."""
    _, name_field, schema = _OWNER_FIELDS[type(row)]
    out = schema.model_validate(row)
    return out.model_copy(update={name_field: names.get(_owner_id(row))})


def _render_optional(row, names: dict[str, str]):
    return _render(row, names) if row is not None else None


async def _latest_for_collector(db: AsyncSession, model, collector_id: str):
    result = await db.execute(
        select(model)
        .where(model.collector_id == collector_id)
        .order_by(model.timestamp.desc())
        .limit(1)
    )
    return result.scalars().first()


async def _transport_for(db: AsyncSession, collector_ids: list[str]) -> list[Transport]:
    result = await db.execute(
        select(Transport)
        .where(Transport.collector_id.in_(collector_ids))
        .order_by(Transport.timestamp.asc())
    )
    return list(result.scalars().all())


def _first_by_collector(rows: Iterable) -> dict[str, object]:
    """Map collector id → first row seen (rows must already be newest-first)."""
    picked: dict[str, object] = {}
    for row in rows:
        picked.setdefault(row.collector_id, row)
    return picked


# ── Collector-rooted chain ───────────────────────────────────

async def _assemble(
    db: AsyncSession,
    collector_id: str,
    lab: LabTest | None = None,
) -> dict:
    collector = await db.get(Collector, collector_id)
    if collector is None:
        raise NotFoundError("Collector", collector_id)

    transport = await _transport_for(db, [collector.id])
    processing = await _latest_for_collector(db, Processing, collector.id)
    if lab is None:
        lab = await _latest_for_collector(db, LabTest, collector.id)

    rows = [collector, *transport, processing, lab]
    names = await _usernames(db, (_owner_id(r) for r in rows if r is not None))

    return {
        "collector": _render(collector, names),
        "transport": [_render(t, names) for t in transport],
        "processing": _render_optional(processing, names),
        "lab": _render_optional(lab, names),
    }


@storage_guarded
async def assemble_collector_chain(db: AsyncSession, collector_id: str) -> ChainOut:
    """Resolve the chain rooted at ``collector_id``.

    Raises:
        NotFoundError if no collector has this id.
    """
    return ChainOut(**await _assemble(db, collector_id))


@storage_guarded
async def trace_lab(db: AsyncSession, lab_id: str) -> LabTraceOut:
    """Resolve the chain behind a lab test id or its ``LabTestID:`` QR token."""
    lab_id = strip_lab_token(lab_id)
    lab = await db.get(LabTest, lab_id)
    if lab is None:
        raise NotFoundError("Lab test", lab_id)
    return LabTraceOut(**await _assemble(db, lab.collector_id, lab=lab))


@storage_guarded
async def resolve_chain(db: AsyncSession, chain_id: str) -> ChainOut:
    """Treat ``chain_id`` as a lab test id first, then as a collector id."""
    lab = await db.get(LabTest, strip_lab_token(chain_id))
    if lab is not None:
        return ChainOut(**await _assemble(db, lab.collector_id, lab=lab))
    return ChainOut(**await _assemble(db, chain_id))


# ── Product-batch-rooted trace ───────────────────────────────

@storage_guarded
async def trace_product_batch(db: AsyncSession, batch_id: str) -> ProductBatchTraceOut:
    """Consumer view: a product batch with every collection behind it.

    Raises:
        NotFoundError if the product batch does not exist.
    """
    result = await db.execute(
        select(ProductBatch)
        .where(ProductBatch.id == batch_id)
        .options(selectinload(ProductBatch.lab_tests))
    )
    batch = result.scalar_one_or_none()
    if batch is None:
        raise NotFoundError("Product batch", batch_id)

    collector_ids = list(dict.fromkeys(lab.collector_id for lab in batch.lab_tests))

    collectors: list[Collector] = []
    transport: list[Transport] = []
    processing: list[Processing] = []
    if collector_ids:
        collectors = list((await db.execute(
            select(Collector)
            .where(Collector.id.in_(collector_ids))
            .order_by(Collector.timestamp.asc())
        )).scalars().all())
        transport = await _transport_for(db, collector_ids)
        processing = list((await db.execute(
            select(Processing)
            .where(Processing.collector_id.in_(collector_ids))
            .order_by(Processing.timestamp.asc())
        )).scalars().all())

    stage_rows = [*batch.lab_tests, *collectors, *transport, *processing]
    names = await _usernames(
        db, [batch.manufacturer_id, *(_owner_id(r) for r in stage_rows)]
    )

    product_batch = ProductBatchOut.model_validate(batch).model_copy(update={
        "manufacturer_name": names.get(batch.manufacturer_id),
        "lab_tests": [_render(lab, names) for lab in batch.lab_tests],
    })

    return ProductBatchTraceOut(
        product_batch=product_batch,
        collectors=[_render(c, names) for c in collectors],
        transport=[_render(t, names) for t in transport],
        processing=[_render(p, names) for p in processing],
    )


# ── Bulk listings ────────────────────────────────────────────

@storage_guarded
async def list_chains(db: AsyncSession) -> list[ChainSummary]:
    """Every collector with its stages; ``completed`` once processed and lab-tested."""
    collectors = (await db.execute(
        select(Collector).order_by(Collector.timestamp.desc())
    )).scalars().all()
    transports = (await db.execute(
        select(Transport).order_by(Transport.timestamp.asc())
    )).scalars().all()
    processings = (await db.execute(
        select(Processing).order_by(Processing.timestamp.desc())
    )).scalars().all()
    labs = (await db.execute(
        select(LabTest).order_by(LabTest.timestamp.desc())
    )).scalars().all()

    transport_by_collector: dict[str, list[Transport]] = {}
    for t in transports:
        transport_by_collector.setdefault(t.collector_id, []).append(t)
    processing_by_collector = _first_by_collector(processings)
    lab_by_collector = _first_by_collector(labs)

    names = await _usernames(
        db, (_owner_id(r) for r in [*collectors, *transports, *processings, *labs])
    )

    chains = []
    for collector in collectors:
        processing = processing_by_collector.get(collector.id)
        lab = lab_by_collector.get(collector.id)
        chains.append(ChainSummary(
            id=collector.id,
            collector=_render(collector, names),
            transport=[_render(t, names) for t in transport_by_collector.get(collector.id, [])],
            processing=_render_optional(processing, names),
            lab=_render_optional(lab, names),
            completed=processing is not None and lab is not None,
        ))
    return chains


@storage_guarded
async def list_lab_batches(db: AsyncSession) -> LabBatchList:
    """Lab-tested lots a manufacturer can combine into a product batch."""
    labs = (await db.execute(
        select(LabTest).order_by(LabTest.timestamp.desc())
    )).scalars().all()

    collectors: dict[str, Collector] = {}
    collector_ids = list({lab.collector_id for lab in labs})
    if collector_ids:
        rows = (await db.execute(
            select(Collector).where(Collector.id.in_(collector_ids))
        )).scalars().all()
        collectors = {c.id: c for c in rows}

    batches = []
    for lab in labs:
        collector = collectors.get(lab.collector_id)
        batches.append(LabBatchItem(
            id=lab.id,
            lab_test_id=lab.id,
            collector_id=lab.collector_id,
            collector=LabBatchCollector.model_validate(collector) if collector else None,
            tested_quantity_kg=lab.tested_quantity_kg,
            test_type=lab.test_type,
            result=lab.result,
            created_at=lab.timestamp,
        ))
    return LabBatchList(batches=batches)
