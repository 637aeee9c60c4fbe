from typing import Dict, Iterable, List, Sequence, Tuple

from .models import CarbonCopy
from .schemas import FormCreate
from .utils import normalize_email

CC_ROUTING_ORDER = "2"


def _cc_emails(form: FormCreate) -> set:
    return {normalize_email(c.email) for c in form.cc}


def resolve_carbon_copies(
    forms: Sequence[Tuple[str, FormCreate]],
    additional_document_ids: Iterable[str],
    signer_count: int,
) -> List[CarbonCopy]:
    """Build the CC list and, per recipient, the documents it must not see.

    A CC recipient is excluded from every form that does not list it and from
    every additional PDF. Recipients are de-duplicated by e-mail, first
    declaration wins, and numbered after the signers. Routing order "2"
    keeps them behind every signer.
    """
    additional = list(additional_document_ids)
    memberships: List[Tuple[str, set]] = [(doc_id, _cc_emails(form)) for doc_id, form in forms]

    seen: Dict[str, CarbonCopy] = {}
    next_id = signer_count + 1
    for _, form in forms:
        for declared in form.cc:
            key = normalize_email(declared.email)
            if key in seen:
                continue
            excluded = [doc_id for doc_id, emails in memberships if key not in emails]
            seen[key] = CarbonCopy(
                name=declared.name,
                email=declared.email,
                recipient_id=str(next_id),
                routing_order=CC_ROUTING_ORDER,
                excluded_documents=excluded + additional,
            )
            next_id += 1
    return list(seen.values())
