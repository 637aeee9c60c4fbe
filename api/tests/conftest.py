from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from envelope_service.errors import UpstreamGenerationError, UpstreamLookupError
from envelope_service.esign import DownloadedDocument, get_esign_client
from envelope_service.form_engine import get_form_engine, parse_location_bundle
from envelope_service.main import app
from envelope_service.models import DocumentSource

FORM_71259_LOCATIONS = {
    "FormId": 71259,
    "SignFields": [
        {"DocusignXCoord": 100.4, "DocusignYCoord": 650.5, "Page": 1, "FieldRole": "1own"},
        {"DocusignXCoord": 100.0, "DocusignYCoord": 700.0, "Page": 2, "FieldRole": "2own"},
    ],
    "SignDateFields": [
        {"DocusignXCoord": 400, "DocusignYCoord": 650, "Page": 1, "FieldRole": "1own"},
        {"DocusignXCoord": 400, "DocusignYCoord": 700, "Page": 2, "FieldRole": "2own"},
    ],
    "SignInitialsFields": [
        {"DocusignXCoord": 50, "DocusignYCoord": 20, "Page": 1, "FieldRole": "1own"},
    ],
}


class FakeFormEngine:
    """In-memory stand-in for FormEngineClient."""

    def __init__(self):
        self.locations: Dict[str, dict] = {"71259": FORM_71259_LOCATIONS}
        self.failing_generation = set()
        self.failing_lookup = set()
        self.authenticated = 0
        self.generated: List[tuple] = []
        self.lookups: List[str] = []

    async def authenticate(self):
        self.authenticated += 1
        return "token"

    async def generate_document(self, form_id, document_id, fields):
        if form_id in self.failing_generation:
            raise UpstreamGenerationError(
                f"Form engine returned no PDF for form {form_id}", "form_engine", "generateDocuments"
            )
        self.generated.append((form_id, document_id, dict(fields)))
        return DocumentSource(
            document_id=document_id,
            origin="generated-form",
            content=f"pdf-{form_id}",
            display_name=f"F{form_id}-{document_id}",
        )

    async def fetch_field_locations(self, form_ids):
        self.lookups.extend(form_ids)
        for form_id in form_ids:
            if form_id in self.failing_lookup or form_id not in self.locations:
                raise UpstreamLookupError(
                    f"Form engine returned no field locations for {form_id}", "form_engine", "fetchFieldLocations"
                )
        return [parse_location_bundle(self.locations[f]) for f in form_ids]


class FakeProvider:
    """In-memory stand-in for ESignClient."""

    def __init__(self):
        self.submitted: List[dict] = []
        self.envelope: dict = {}
        self.recipients: dict = {"signers": []}
        self.documents: dict = {"envelopeDocuments": []}
        self.envelope_reads: List[tuple] = []
        self.downloads: List[tuple] = []

    async def resolve_account(self, error_cls=None, operation=None):
        return None

    async def submit_envelope(self, payload):
        self.submitted.append(payload)
        return {"envelopeId": f"env-{len(self.submitted)}", "status": payload["status"]}

    async def get_envelope(self, envelope_id, include: Optional[str] = None):
        self.envelope_reads.append((envelope_id, include))
        return self.envelope

    async def get_recipients(self, envelope_id, include_tabs=True):
        return self.recipients

    async def get_documents(self, envelope_id):
        return self.documents

    async def download(self, envelope_id, kind, document_id=None):
        self.downloads.append((envelope_id, kind, document_id))
        return DownloadedDocument(b"%PDF-1.4 test", "application/pdf", f"envelope-{envelope_id}-{kind}.pdf")


@pytest.fixture
def form_engine():
    return FakeFormEngine()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def client(form_engine, provider):
    app.dependency_overrides[get_form_engine] = lambda: form_engine
    app.dependency_overrides[get_esign_client] = lambda: provider
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
