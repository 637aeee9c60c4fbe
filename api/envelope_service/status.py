from typing import Any, Dict, List, Mapping

from .errors import StatusSnapshotError
from .models import EnvelopeSignersStatus, SignerDocumentStatus, SignerStatus, TimelineEvent
from .utils import is_blank, normalize_email

NON_CONTENT_DOCUMENTS = ("certificate", "summary")

# sequence name -> tabType the provider reports for it
TAB_SEQUENCES = {
    "signHereTabs": "signhere",
    "initialHereTabs": "initialhere",
    "dateSignedTabs": "datesigned",
    "textTabs": "text",
    "checkboxTabs": "checkbox",
}


def tab_completed(tab: Mapping[str, Any], kind: str) -> bool:
    kind = (tab.get("tabType") or kind or "").lower()
    if kind == "signhere":
        return tab.get("status") == "signed"
    if kind == "datesigned":
        return not is_blank(tab.get("value"))
    return tab.get("status") == "signed" or not is_blank(tab.get("value"))


def _tabs_by_document(signer: Mapping[str, Any]) -> Dict[str, List[tuple]]:
    """Group a signer's tabs by documentId, first-referenced document first."""
    grouped: Dict[str, List[tuple]] = {}
    tabs = signer.get("tabs") or {}
    if not isinstance(tabs, Mapping):
        raise StatusSnapshotError("recipients listing has malformed tabs", "esign", "getRecipients")
    for sequence, kind in TAB_SEQUENCES.items():
        entries = tabs.get(sequence) or []
        if not isinstance(entries, list) or not all(isinstance(tab, Mapping) for tab in entries):
            raise StatusSnapshotError(f"recipients listing has malformed {sequence}", "esign", "getRecipients")
        for tab in entries:
            grouped.setdefault(str(tab.get("documentId")), []).append((tab, kind))
    return grouped


def _document_status(document: Mapping[str, Any], tabs: List[tuple], signer: Mapping[str, Any]) -> SignerDocumentStatus:
    signed = bool(tabs) and all(tab_completed(tab, kind) for tab, kind in tabs)
    signed_at = None
    if signed:
        signed_at = next((tab["signedDateTime"] for tab, _ in tabs if tab.get("signedDateTime")), None)
        signed_at = signed_at or signer.get("signedDateTime")
    return SignerDocumentStatus(
        document_id=str(document.get("documentId")),
        document_name=document.get("name") or "",
        status="signed" if signed else "not_signed",
        signed_date_time=signed_at,
    )


def reduce_signers(recipients: Mapping[str, Any], documents: Mapping[str, Any]) -> List[SignerStatus]:
    if not isinstance(recipients, Mapping) or not isinstance(documents, Mapping):
        raise StatusSnapshotError("envelope snapshot is not a JSON object", "esign", "status")
    envelope_documents = documents.get("envelopeDocuments")
    if not isinstance(envelope_documents, list):
        raise StatusSnapshotError("documents listing has no envelopeDocuments", "esign", "getDocuments")
    if not all(isinstance(doc, Mapping) for doc in envelope_documents):
        raise StatusSnapshotError("documents listing has malformed entries", "esign", "getDocuments")
    raw_signers = recipients.get("signers") or []
    if not isinstance(raw_signers, list):
        raise StatusSnapshotError("recipients listing has malformed signers", "esign", "getRecipients")

    signing_documents = {
        str(doc.get("documentId")): doc
        for doc in envelope_documents
        if str(doc.get("documentId")) not in NON_CONTENT_DOCUMENTS
    }

    by_email: Dict[str, SignerStatus] = {}
    for raw in raw_signers:
        if not isinstance(raw, Mapping):
            raise StatusSnapshotError("recipients listing has malformed signers", "esign", "getRecipients")
        key = normalize_email(raw.get("email"))
        status = by_email.get(key)
        if status is None:
            status = by_email[key] = SignerStatus(email=raw.get("email") or "", name=raw.get("name") or "")
        for document_id, tabs in _tabs_by_document(raw).items():
            document = signing_documents.get(document_id)
            if document is None:
                continue
            entry = _document_status(document, tabs, raw)
            status.documents.append(entry)
            status.total_documents += 1
            if entry.status == "signed":
                status.signed_count += 1

    return sorted(by_email.values(), key=lambda s: s.email)


def _signed_times(signers: List[SignerStatus]) -> List[str]:
    return sorted(
        d.signed_date_time
        for s in signers
        for d in s.documents
        if d.status == "signed" and d.signed_date_time
    )


def build_timeline(envelope: Mapping[str, Any], signers: List[SignerStatus]) -> List[TimelineEvent]:
    timeline = [
        TimelineEvent(status=name, date_time=envelope.get(field) or "", completed=bool(envelope.get(field)))
        for name, field in (
            ("created", "createdDateTime"),
            ("sent", "sentDateTime"),
            ("delivered", "deliveredDateTime"),
        )
    ]

    times = _signed_times(signers)
    all_signed = bool(signers) and all(
        s.total_documents > 0 and s.signed_count == s.total_documents for s in signers
    )
    if all_signed:
        timeline.append(TimelineEvent(status="signed", date_time=times[-1] if times else "", completed=True))
    else:
        started = any(s.signed_count > 0 for s in signers)
        earliest = times[0] if started and times else ""
        timeline.append(TimelineEvent(status="signed", date_time=earliest, completed=False))

    is_completed = envelope.get("status") == "completed"
    completed_at = ""
    if is_completed:
        completed_at = envelope.get("completedDateTime") or envelope.get("statusChangedDateTime") or ""
    timeline.append(TimelineEvent(status="completed", date_time=completed_at, completed=is_completed))
    return timeline


def reduce_signing_status(
    envelope_id: str,
    envelope: Mapping[str, Any],
    recipients: Mapping[str, Any],
    documents: Mapping[str, Any],
) -> EnvelopeSignersStatus:
    """Reduce a provider snapshot to per-signer progress and a timeline.

    Pure: nothing is cached, and the same snapshot always reduces to the
    same result.
    """
    if not isinstance(envelope, Mapping):
        raise StatusSnapshotError("envelope is not a JSON object", "esign", "getEnvelope")
    signers = reduce_signers(recipients, documents)
    return EnvelopeSignersStatus(
        envelope_id=envelope_id,
        status=envelope.get("status"),
        timeline=build_timeline(envelope, signers),
        signers=signers,
    )
