"""Manufacturer routes — compose product batches from lab-tested lots.

Endpoints:
    GET  /api/lab-batches     Lab tests available for composition, newest first
    POST /api/product-batch   Create a product batch from selected lab tests
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from herbtrace.auth.deps import Actor, authenticated_body, get_current_actor
from herbtrace.database import get_db
from herbtrace.schemas.product_batch import (
    LabBatchList,
    ProductBatchCreate,
    ProductBatchOut,
    ProductBatchResponse,
)
from herbtrace.services import chain_assembler, stage_recorder
from herbtrace.utils.qr import qr_data_uri

router = APIRouter()


@router.get("/lab-batches", response_model=LabBatchList)
async def list_lab_batches(
    db: AsyncSession = Depends(get_db),
    _actor: Actor = Depends(get_current_actor),
):
    return await chain_assembler.list_lab_batches(db)


@router.post("/product-batch", response_model=ProductBatchResponse, status_code=status.HTTP_201_CREATED)
async def create_product_batch(
    body: ProductBatchCreate = Depends(authenticated_body(ProductBatchCreate)),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Create a product batch; the manufacturer is always the caller.

    The QR payload is a JSON string carrying the batch id and manufacturer id.
    """
    result = await stage_recorder.create_product_batch(body, actor, db)
    batch = result["record"]
    product_batch = ProductBatchOut.model_validate(batch).model_copy(
        update={"manufacturer_name": actor.username}
    )
    return ProductBatchResponse(
        message="Product batch created",
        product_batch=product_batch,
        qr_payload=result["qr_token"],
        qr_code_url=qr_data_uri(result["qr_token"]),
    )
