from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from .. import service
from ..esign import ESignClient, get_esign_client
from ..form_engine import FormEngineClient, get_form_engine
from ..schemas import EnvelopeCreate, LinkedEnvelopeCreate, PrefilledEnvelopeCreate

router = APIRouter()


@router.post("")
async def create_envelope(
    data: EnvelopeCreate,
    engine: FormEngineClient = Depends(get_form_engine),
    provider: ESignClient = Depends(get_esign_client),
):
    return await service.create_envelope(data, engine, provider)


@router.post("/linked")
async def create_linked_envelope(
    data: LinkedEnvelopeCreate,
    engine: FormEngineClient = Depends(get_form_engine),
    provider: ESignClient = Depends(get_esign_client),
):
    return await service.create_linked_envelope(data, engine, provider)


@router.post("/prefilled")
async def create_prefilled_envelope(
    data: PrefilledEnvelopeCreate,
    engine: FormEngineClient = Depends(get_form_engine),
    provider: ESignClient = Depends(get_esign_client),
):
    return await service.create_prefilled_envelope(data, engine, provider)


@router.get("/{envelope_id}")
async def get_envelope(envelope_id: str, provider: ESignClient = Depends(get_esign_client)):
    return {"envelopeStatus": await service.get_envelope(envelope_id, provider)}


@router.get("/{envelope_id}/signers-status")
async def get_signers_status(envelope_id: str, provider: ESignClient = Depends(get_esign_client)):
    status = await service.get_signers_status(envelope_id, provider)
    return status.to_wire()


@router.get("/{envelope_id}/download")
async def download(
    envelope_id: str,
    type: str = Query("combined"),
    document_id: Optional[str] = Query(None, alias="documentId"),
    provider: ESignClient = Depends(get_esign_client),
):
    doc = await service.download_documents(envelope_id, type, document_id, provider)
    return Response(
        content=doc.content,
        media_type=doc.content_type,
        headers={
            "Content-Disposition": f'attachment; filename="{doc.filename}"',
            "Cache-Control": "no-cache, no-store, must-revalidate",
        },
    )
