import pytest

from envelope_service.composer import compose_envelope, validate_document_ids, validate_envelope_create
from envelope_service.errors import ValidationError
from envelope_service.models import DocumentSource, Signer
from envelope_service.schemas import EnvelopeCreate, SignLocations


def source(document_id, origin):
    return DocumentSource(document_id=document_id, origin=origin, content="eA==", display_name=f"doc {document_id}")


def test_compose_orders_supplied_documents_first():
    envelope = compose_envelope(
        "Subject",
        [source("2", "generated-form"), source("1", "client-supplied")],
        [Signer(email="a@a.com", name="A", recipient_id="1")],
    )
    wire = envelope.to_wire()
    assert [d["documentId"] for d in wire["documents"]] == ["1", "2"]
    assert wire["status"] == "created"
    assert wire["enforceSignerVisibility"] is True


def test_compose_without_carbon_copies_keeps_empty_list():
    wire = compose_envelope("S", [source("1", "generated-form")], [], None, "sent").to_wire()
    assert wire["recipients"] == {"signers": [], "carbonCopies": []}
    assert wire["status"] == "sent"


def test_compose_requires_a_document():
    with pytest.raises(ValidationError):
        compose_envelope("S", [], [])


def test_envelope_create_accepts_null_collections():
    data = EnvelopeCreate.model_validate({"forms": None, "additionalPDFs": [{"documentBase64": "eA=="}], "status": None})
    assert data.forms == []
    assert data.status == "created"
    validate_envelope_create(data)


def test_blank_form_id_rejected():
    data = EnvelopeCreate.model_validate({"forms": [{"formId": "  ", "signers": []}]})
    with pytest.raises(ValidationError, match="formId is required"):
        validate_envelope_create(data)


def test_cc_without_email_rejected():
    data = EnvelopeCreate.model_validate({"forms": [{"formId": "1", "cc": [{"name": "C", "email": ""}]}]})
    with pytest.raises(ValidationError, match="email is required"):
        validate_envelope_create(data)


def test_additional_pdf_signer_without_locations_accepted():
    data = EnvelopeCreate.model_validate(
        {
            "additionalPDFs": [
                {"documentBase64": "eA==", "signers": [{"email": "a@a.com", "firstName": "A", "lastName": "B"}]}
            ]
        }
    )
    validate_envelope_create(data)
    assert data.additional_pdfs[0].signers[0].sign_locations is None


def test_null_page_number_defaults_to_first_page():
    locations = SignLocations.model_validate({"signHere": [{"xPosition": 1, "yPosition": 2, "pageNumber": None}]})
    assert locations.sign_here[0].page_number == "1"


@pytest.mark.parametrize(
    "ids, message",
    [
        (["1", ""], "non-empty"),
        (["1", "x2"], "numeric"),
        (["1", "2", "1"], "unique"),
    ],
)
def test_document_id_rules(ids, message):
    with pytest.raises(ValidationError, match=message):
        validate_document_ids(ids)


def test_document_ids_accepted():
    validate_document_ids(["1", "20", "3"])
