from typing import Any, List, NamedTuple, Sequence, Tuple


class AssignedDocuments(NamedTuple):
    client: List[Tuple[str, Any]]
    forms: List[Tuple[str, Any]]


def assign_document_ids(client_documents: Sequence, forms: Sequence) -> AssignedDocuments:
    """Number client-supplied documents "1".."k", then forms "k+1".."k+m".

    Identities depend only on input positions, so a form that later fails to
    resolve never shifts the numbering of anything else.
    """
    k = len(client_documents)
    client = [(str(i + 1), doc) for i, doc in enumerate(client_documents)]
    assigned_forms = [(str(k + i + 1), form) for i, form in enumerate(forms)]
    return AssignedDocuments(client, assigned_forms)
