from typing import Iterable, List, Optional, Sequence

from .errors import ValidationError
from .models import CarbonCopy, DocumentSource, EnvelopeRequest, Signer
from .schemas import EnvelopeCreate, LinkedEnvelopeCreate, PrefilledEnvelopeCreate
from .utils import is_blank, is_numeric_id


def _require_signer_fields(where: str, signer, needs_role: bool) -> None:
    missing = [
        label
        for label, value in (
            ("email", signer.email),
            ("firstName", signer.first_name),
            ("lastName", signer.last_name),
        )
        if is_blank(value)
    ]
    if missing:
        raise ValidationError(f"{where}: signer is missing {', '.join(missing)}")
    if needs_role and is_blank(signer.role):
        raise ValidationError(f"{where}: signer is missing role")


def validate_envelope_create(data: EnvelopeCreate) -> None:
    if not data.forms and not data.additional_pdfs:
        raise ValidationError("At least one form or additional PDF is required")
    for i, form in enumerate(data.forms):
        if is_blank(form.form_id):
            raise ValidationError(f"forms[{i}]: formId is required")
        for j, signer in enumerate(form.signers):
            _require_signer_fields(f"forms[{i}].signers[{j}]", signer, needs_role=True)
        for j, cc in enumerate(form.cc):
            if is_blank(cc.email):
                raise ValidationError(f"forms[{i}].cc[{j}]: email is required")
    for i, pdf in enumerate(data.additional_pdfs):
        if is_blank(pdf.document_base64):
            raise ValidationError(f"additionalPDFs[{i}]: documentBase64 is required")
        for j, signer in enumerate(pdf.signers):
            _require_signer_fields(f"additionalPDFs[{i}].signers[{j}]", signer, needs_role=False)


def validate_document_ids(document_ids: Sequence) -> None:
    """Client-declared document ids must be unique numeric strings."""
    if any(is_blank(d) or not isinstance(d, str) for d in document_ids):
        raise ValidationError("Document IDs must be non-empty strings")
    if not all(is_numeric_id(d) for d in document_ids):
        raise ValidationError('Document IDs must be numeric strings (e.g. "1", "2", etc.)')
    if len(set(document_ids)) != len(document_ids):
        raise ValidationError("Document IDs must be unique")


def validate_linked_envelope(data: LinkedEnvelopeCreate) -> None:
    if not data.forms or not data.recipient_details:
        raise ValidationError("At least one form and one recipient are required")
    for i, form in enumerate(data.forms):
        if is_blank(form.form_id):
            raise ValidationError(f"forms[{i}]: formId is required")
    for i, doc in enumerate(data.additional_documents):
        if is_blank(doc.document_base64):
            raise ValidationError(f"additionalDocuments[{i}]: documentBase64 is required")

    declared = [f.document_id for f in data.forms] + [d.document_id for d in data.additional_documents]
    validate_document_ids(declared)

    known = set(declared)
    for i, recipient in enumerate(data.recipient_details):
        where = f"recipientDetails[{i}]"
        if is_blank(recipient.email) or is_blank(recipient.name):
            raise ValidationError(f"{where}: email and name are required")
        linked = recipient.linked_documents()
        if not linked:
            raise ValidationError(f"{where}: documentId or documents is required")
        for link in linked:
            if link.document_id not in known:
                raise ValidationError(f"{where}: documentId mismatch ({link.document_id!r})")


def validate_prefilled_envelope(data: PrefilledEnvelopeCreate) -> None:
    if is_blank(data.form_id):
        raise ValidationError("Missing required field: formId")
    if is_blank(data.pdf_base64):
        raise ValidationError("Missing required field: pdfBase64")
    if not data.signers:
        raise ValidationError("Missing required field: signers (must be a non-empty array)")
    for j, signer in enumerate(data.signers):
        _require_signer_fields(f"signers[{j}]", signer, needs_role=True)


def compose_envelope(
    email_subject: str,
    documents: Iterable[DocumentSource],
    signers: Iterable[Signer],
    carbon_copies: Optional[Iterable[CarbonCopy]] = None,
    status: Optional[str] = None,
) -> EnvelopeRequest:
    documents = list(documents)
    if not documents:
        raise ValidationError("An envelope needs at least one document")
    ordered: List[DocumentSource] = [d for d in documents if d.origin == "client-supplied"]
    ordered += [d for d in documents if d.origin != "client-supplied"]
    return EnvelopeRequest(
        email_subject=email_subject,
        documents=ordered,
        signers=list(signers),
        carbon_copies=list(carbon_copies or []),
        status=status or "created",
    )
