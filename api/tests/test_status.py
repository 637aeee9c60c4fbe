import pytest

from envelope_service.errors import StatusSnapshotError
from envelope_service.status import reduce_signing_status, tab_completed

DOCUMENTS = {
    "envelopeDocuments": [
        {"documentId": "1", "name": "Agreement"},
        {"documentId": "2", "name": "Addendum"},
        {"documentId": "certificate", "name": "Summary"},
    ]
}


def signer(email, **tabs):
    return {"email": email, "name": email.split("@")[0], "tabs": tabs}


def sign(document_id, status="signed", when=None):
    tab = {"documentId": document_id, "status": status}
    if when:
        tab["signedDateTime"] = when
    return tab


def milestone(result, name):
    return next(e for e in result.timeline if e.status == name)


def test_partially_signed_document_is_not_signed():
    recipients = {"signers": [signer("a@a.com", signHereTabs=[sign("1"), sign("1", "pending")])]}
    result = reduce_signing_status("env", {"status": "sent"}, recipients, DOCUMENTS)
    (a,) = result.signers
    assert [(d.document_id, d.status) for d in a.documents] == [("1", "not_signed")]
    assert (a.signed_count, a.total_documents) == (0, 1)


def test_signed_milestone_uses_earliest_when_not_everyone_signed():
    recipients = {
        "signers": [
            signer("a@a.com", signHereTabs=[sign("1", when="2024-03-02T00:00:00Z")]),
            signer(
                "b@a.com",
                signHereTabs=[sign("1", when="2024-03-01T00:00:00Z"), sign("2", "pending")],
            ),
        ]
    }
    result = reduce_signing_status("env", {"status": "sent"}, recipients, DOCUMENTS)
    signed = milestone(result, "signed")
    assert signed.completed is False
    assert signed.date_time == "2024-03-01T00:00:00Z"


def test_signed_milestone_uses_latest_when_everyone_signed():
    recipients = {
        "signers": [
            signer("b@a.com", signHereTabs=[sign("1", when="2024-03-01T00:00:00Z")]),
            signer("a@a.com", signHereTabs=[sign("2", when="2024-03-05T00:00:00Z")]),
        ]
    }
    envelope = {"status": "completed", "statusChangedDateTime": "2024-03-06T00:00:00Z"}
    result = reduce_signing_status("env", envelope, recipients, DOCUMENTS)
    assert milestone(result, "signed").completed is True
    assert milestone(result, "signed").date_time == "2024-03-05T00:00:00Z"
    assert milestone(result, "completed").date_time == "2024-03-06T00:00:00Z"
    assert [s.email for s in result.signers] == ["a@a.com", "b@a.com"]


def test_no_signers_is_not_signed():
    result = reduce_signing_status("env", {"status": "created"}, {"signers": []}, DOCUMENTS)
    assert result.signers == []
    assert milestone(result, "signed").completed is False
    assert milestone(result, "signed").date_time == ""


def test_non_content_and_unknown_documents_skipped():
    recipients = {
        "signers": [
            signer("a@a.com", signHereTabs=[sign("certificate"), sign("9"), sign("2", when="t")])
        ]
    }
    result = reduce_signing_status("env", {}, recipients, DOCUMENTS)
    (a,) = result.signers
    assert [d.document_id for d in a.documents] == ["2"]
    assert a.documents[0].signed_date_time == "t"


def test_date_and_text_tabs():
    recipients = {
        "signers": [
            signer(
                "a@a.com",
                signHereTabs=[sign("1")],
                dateSignedTabs=[{"documentId": "1", "value": ""}],
                textTabs=[{"documentId": "2", "value": "filled"}],
            )
        ]
    }
    result = reduce_signing_status("env", {}, recipients, DOCUMENTS)
    statuses = {d.document_id: d.status for d in result.signers[0].documents}
    assert statuses == {"1": "not_signed", "2": "signed"}


def test_tab_type_overrides_sequence():
    assert tab_completed({"tabType": "dateSigned", "value": "2024"}, "signhere") is True
    assert tab_completed({"status": "signed"}, "signhere") is True
    assert tab_completed({"value": "x"}, "signhere") is False


def test_same_snapshot_reduces_identically():
    recipients = {"signers": [signer("a@a.com", signHereTabs=[sign("1", when="t")])]}
    first = reduce_signing_status("env", {"status": "sent"}, recipients, DOCUMENTS)
    second = reduce_signing_status("env", {"status": "sent"}, recipients, DOCUMENTS)
    assert first.to_wire() == second.to_wire()


@pytest.mark.parametrize(
    "recipients, documents",
    [
        ({"signers": []}, {}),
        ({"signers": "nope"}, DOCUMENTS),
        ({"signers": ["nope"]}, DOCUMENTS),
        ({"signers": []}, {"envelopeDocuments": ["nope"]}),
        ({"signers": [{"email": "a@a.com", "tabs": ["nope"]}]}, DOCUMENTS),
        ({"signers": [{"email": "a@a.com", "tabs": {"signHereTabs": ["nope"]}}]}, DOCUMENTS),
        ({"signers": [{"email": "a@a.com", "tabs": {"textTabs": "nope"}}]}, DOCUMENTS),
    ],
)
def test_malformed_snapshot(recipients, documents):
    with pytest.raises(StatusSnapshotError):
        reduce_signing_status("env", {}, recipients, documents)
