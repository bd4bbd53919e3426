"""Chain read routes. Public: consumers scan a QR code without logging in.

Endpoints:
    GET /trace/lab/{lab_id}                 Chain rooted at a lab test (token form accepted)
    GET /trace/product-batch/{batch_id}     Product batch with every collection behind it
    GET /chains                             All chains (dashboard)
    GET /chains/{chain_id}                  Chain by lab test id or collector id
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from herbtrace.database import get_db
from herbtrace.schemas.chain import ChainOut, ChainSummary, LabTraceOut, ProductBatchTraceOut
from herbtrace.services import chain_assembler

router = APIRouter()


@router.get("/trace/lab/{lab_id}", response_model=LabTraceOut)
async def trace_lab(lab_id: str, db: AsyncSession = Depends(get_db)):
    return await chain_assembler.trace_lab(db, lab_id)


@router.get("/trace/product-batch/{batch_id}", response_model=ProductBatchTraceOut)
async def trace_product_batch(batch_id: str, db: AsyncSession = Depends(get_db)):
    return await chain_assembler.trace_product_batch(db, batch_id)


@router.get("/chains", response_model=list[ChainSummary])
async def list_chains(db: AsyncSession = Depends(get_db)):
    return await chain_assembler.list_chains(db)


@router.get("/chains/{chain_id}", response_model=ChainOut)
async def get_chain(chain_id: str, db: AsyncSession = Depends(get_db)):
    return await chain_assembler.resolve_chain(db, chain_id)
