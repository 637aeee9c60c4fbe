"""Request-scoped envelope pipeline shared by every composition route.

validate -> assign document ids -> generate PDFs and look up field locations
concurrently -> aggregate signers -> resolve CC -> compose -> submit.

Each route only decides which inputs reach the shared steps.
"""
import asyncio
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .carbon_copies import resolve_carbon_copies
from .composer import (
    compose_envelope,
    validate_envelope_create,
    validate_linked_envelope,
    validate_prefilled_envelope,
)
from .documents import assign_document_ids
from .errors import (
    ServiceError,
    StatusSnapshotError,
    UpstreamGenerationError,
    UpstreamLookupError,
    ValidationError,
)
from .esign import DownloadedDocument
from .models import DocumentSource, EnvelopeRequest, EnvelopeSignersStatus, FieldLocationBundle
from .schemas import EnvelopeCreate, FormCreate, LinkedEnvelopeCreate, PrefilledEnvelopeCreate
from .signers import SignerAggregator, aggregate_signers
from .status import reduce_signing_status

logger = logging.getLogger(__name__)

DOWNLOAD_KINDS = ("combined", "archive", "individual")

Locations = Dict[str, Optional[FieldLocationBundle]]


async def _join(*aws) -> list:
    """Await every branch to completion, then re-raise the first failure."""
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


async def _lookup(engine, form_id: str) -> Optional[FieldLocationBundle]:
    try:
        bundles = await engine.fetch_field_locations([form_id])
    except UpstreamLookupError as exc:
        logger.warning("Field-location lookup failed for form %s: %s", form_id, exc.message)
        return None
    return next((b for b in bundles if b.form_id == form_id), None)


async def resolve_field_locations(engine, form_ids: Iterable[str]) -> Locations:
    """One lookup per unique form id, all in flight together. Failures map to None."""
    unique = list(dict.fromkeys(form_ids))
    bundles = await _join(*(_lookup(engine, form_id) for form_id in unique))
    return dict(zip(unique, bundles))


async def generate_documents(engine, forms: Sequence[Tuple[str, str, Mapping[str, str]]]) -> List[DocumentSource]:
    """Generate one PDF per (document_id, form_id, fields); any failure is fatal."""
    results = await asyncio.gather(
        *(engine.generate_document(form_id, document_id, fields) for document_id, form_id, fields in forms),
        return_exceptions=True,
    )
    failures = [r for r in results if isinstance(r, BaseException)]
    for failure in failures:
        if not isinstance(failure, ServiceError):
            raise failure
    if failures:
        raise UpstreamGenerationError(
            f"Document generation failed for {len(failures)} of {len(results)} forms",
            "form_engine",
            "generateDocuments",
            details=[f.message for f in failures],
        ) from failures[0]
    return list(results)


async def _fetch_form_inputs(engine, forms: Sequence[Tuple[str, str, Mapping[str, str]]]):
    if not forms:
        return [], {}
    await engine.authenticate()
    return await _join(
        generate_documents(engine, forms),
        resolve_field_locations(engine, [form_id for _, form_id, _ in forms]),
    )


async def submit(provider, envelope: EnvelopeRequest) -> dict:
    result = await provider.submit_envelope(envelope.to_wire())
    logger.info(
        "Submitted envelope %s: %d documents, %d signers, %d cc",
        result.get("envelopeId"),
        len(envelope.documents),
        len(envelope.signers),
        len(envelope.carbon_copies),
    )
    return result


async def create_envelope(data: EnvelopeCreate, engine, provider) -> dict:
    validate_envelope_create(data)
    assigned = assign_document_ids(data.additional_pdfs, data.forms)
    supplied = [
        DocumentSource(
            document_id=doc_id,
            origin="client-supplied",
            content=pdf.document_base64,
            display_name=pdf.document_name,
        )
        for doc_id, pdf in assigned.client
    ]
    generated, locations = await _fetch_form_inputs(
        engine, [(doc_id, form.form_id, form.form_fields) for doc_id, form in assigned.forms]
    )

    signers = aggregate_signers(assigned.forms, locations, assigned.client)
    carbon_copies = resolve_carbon_copies(
        assigned.forms, [doc_id for doc_id, _ in assigned.client], len(signers)
    )
    envelope = compose_envelope(data.email_subject, supplied + generated, signers, carbon_copies, data.status)
    return await submit(provider, envelope)


async def create_linked_envelope(data: LinkedEnvelopeCreate, engine, provider) -> dict:
    """Recipients reference documents by client-declared ids.

    Declared ids only link recipients to documents; the envelope itself uses
    ids from ``assign_document_ids`` like every other route.
    """
    validate_linked_envelope(data)
    assigned = assign_document_ids(data.additional_documents, data.forms)
    to_assigned = {doc.document_id: doc_id for doc_id, doc in assigned.client}
    to_assigned.update({form.document_id: doc_id for doc_id, form in assigned.forms})
    form_of = {doc_id: form.form_id for doc_id, form in assigned.forms}

    supplied = [
        DocumentSource(
            document_id=doc_id,
            origin="client-supplied",
            content=doc.document_base64,
            display_name=doc.file_name,
        )
        for doc_id, doc in assigned.client
    ]
    generated, locations = await _fetch_form_inputs(
        engine, [(doc_id, form.form_id, form.form_fields) for doc_id, form in assigned.forms]
    )
    for form_id, bundle in locations.items():
        if bundle is None:
            logger.warning("No field locations for form %s; linked recipients get no tabs there", form_id)

    aggregator = SignerAggregator()
    for recipient in data.recipient_details:
        for link in recipient.linked_documents():
            doc_id = to_assigned[link.document_id]
            bundle = locations.get(form_of[doc_id]) if doc_id in form_of else None
            aggregator.add_located(
                doc_id, bundle, recipient.email, recipient.name, link.roles, recipient.attachments
            )

    envelope = compose_envelope(
        data.email_subject, supplied + generated, aggregator.signers, [], data.status
    )
    return await submit(provider, envelope)


async def create_prefilled_envelope(data: PrefilledEnvelopeCreate, engine, provider) -> dict:
    validate_prefilled_envelope(data)
    assigned = assign_document_ids([data.pdf_base64], [])
    doc_id, content = assigned.client[0]
    document = DocumentSource(
        document_id=doc_id,
        origin="client-supplied",
        content=content,
        display_name=f"Form {data.form_id}.pdf",
    )
    await engine.authenticate()
    locations = await resolve_field_locations(engine, [data.form_id])

    form = FormCreate(form_id=data.form_id, signers=data.signers)
    signers = aggregate_signers([(doc_id, form)], locations)
    envelope = compose_envelope(data.email_subject, [document], signers, [], data.status)
    return await submit(provider, envelope)


async def get_envelope(envelope_id: str, provider) -> dict:
    return await provider.get_envelope(envelope_id, include="recipients,tabs")


async def get_signers_status(envelope_id: str, provider) -> EnvelopeSignersStatus:
    await provider.resolve_account(StatusSnapshotError, "status")
    envelope, recipients, documents = await _join(
        provider.get_envelope(envelope_id),
        provider.get_recipients(envelope_id, include_tabs=True),
        provider.get_documents(envelope_id),
    )
    return reduce_signing_status(envelope_id, envelope, recipients, documents)


async def download_documents(
    envelope_id: str, kind: str, document_id: Optional[str], provider
) -> DownloadedDocument:
    if kind not in DOWNLOAD_KINDS or (kind == "individual" and not document_id):
        raise ValidationError("Invalid download type or missing documentId")
    return await provider.download(envelope_id, kind, document_id)
