"""Stage submission routes — one POST per supply-chain stage.

Endpoints:
    POST /collector    Collector record; QR token = its own id
    POST /transport    Transport leg; QR token = the collector id
    POST /processing   Processing record; QR token = the collector id
    POST /labtesting   Lab test; QR token = "LabTestID:<lab id>"

All require a bearer token, checked before the body is read.  The record's
owner is always the caller.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from herbtrace.auth.deps import Actor, authenticated_body, get_current_actor
from herbtrace.database import get_db
from herbtrace.schemas.stages import (
    CollectorCreate,
    CollectorOut,
    CollectorResponse,
    LabTestCreate,
    LabTestOut,
    LabTestResponse,
    ProcessingCreate,
    ProcessingOut,
    ProcessingResponse,
    TransportCreate,
    TransportOut,
    TransportResponse,
)
from herbtrace.services import stage_recorder
from herbtrace.utils.qr import qr_data_uri

router = APIRouter()


@router.post("/collector", response_model=CollectorResponse, status_code=status.HTTP_201_CREATED)
async def create_collector(
    body: CollectorCreate = Depends(authenticated_body(CollectorCreate)),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    result = await stage_recorder.record_collector(body, actor, db)
    collector = CollectorOut.model_validate(result["record"]).model_copy(
        update={"username": actor.username}
    )
    return CollectorResponse(
        message="Collector record created",
        collector=collector,
        qr_token=result["qr_token"],
        qr_code_url=qr_data_uri(result["qr_token"]),
    )


@router.post("/transport", response_model=TransportResponse, status_code=status.HTTP_201_CREATED)
async def create_transport(
    body: TransportCreate = Depends(authenticated_body(TransportCreate)),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    result = await stage_recorder.record_transport(body, actor, db)
    transport = TransportOut.model_validate(result["record"]).model_copy(
        update={"transporter_name": actor.username}
    )
    return TransportResponse(
        message="Transport recorded",
        transport=transport,
        qr_token=result["qr_token"],
        qr_code_url=qr_data_uri(result["qr_token"]),
    )


@router.post("/processing", response_model=ProcessingResponse, status_code=status.HTTP_201_CREATED)
async def create_processing(
    body: ProcessingCreate = Depends(authenticated_body(ProcessingCreate)),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    result = await stage_recorder.record_processing(body, actor, db)
    processing = ProcessingOut.model_validate(result["record"]).model_copy(
        update={"processor_name": actor.username}
    )
    return ProcessingResponse(
        message="Processing recorded",
        processing=processing,
        qr_token=result["qr_token"],
        qr_code_url=qr_data_uri(result["qr_token"]),
    )


@router.post("/labtesting", response_model=LabTestResponse, status_code=status.HTTP_201_CREATED)
async def create_lab_test(
    body: LabTestCreate = Depends(authenticated_body(LabTestCreate)),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    result = await stage_recorder.record_lab_test(body, actor, db)
    lab_test = LabTestOut.model_validate(result["record"]).model_copy(
        update={"lab_technician_name": actor.username}
    )
    return LabTestResponse(
        message="Lab test recorded",
        lab_test=lab_test,
        qr_token=result["qr_token"],
        qr_code_url=qr_data_uri(result["qr_token"]),
    )
