import asyncio

import pytest

from envelope_service import service
from envelope_service.errors import StatusSnapshotError, UpstreamGenerationError, UpstreamLookupError
from envelope_service.schemas import EnvelopeCreate

from conftest import FakeFormEngine, FakeProvider


class SlowLookupEngine(FakeFormEngine):
    def __init__(self):
        super().__init__()
        self.failing_generation.add("71259")
        self.lookup_finished = False

    async def fetch_field_locations(self, form_ids):
        await asyncio.sleep(0.05)
        self.lookup_finished = True
        raise UpstreamLookupError("lookup timed out", "form_engine", "fetchFieldLocations")


class SlowReadProvider(FakeProvider):
    def __init__(self):
        super().__init__()
        self.documents_finished = False

    async def get_envelope(self, envelope_id, include=None):
        raise StatusSnapshotError("provider answered 500 to getEnvelope", "esign", "getEnvelope")

    async def get_documents(self, envelope_id):
        await asyncio.sleep(0.05)
        self.documents_finished = True
        return self.documents


def pending_tasks():
    return [t for t in asyncio.all_tasks() if t is not asyncio.current_task() and not t.done()]


def test_generation_failure_waits_for_lookups():
    engine = SlowLookupEngine()
    data = EnvelopeCreate.model_validate(
        {
            "forms": [
                {
                    "formId": "71259",
                    "signers": [{"email": "a@a.com", "firstName": "A", "lastName": "B", "role": "1own"}],
                }
            ]
        }
    )

    async def go():
        with pytest.raises(UpstreamGenerationError):
            await service.create_envelope(data, engine, FakeProvider())
        return pending_tasks()

    assert asyncio.run(go()) == []
    assert engine.lookup_finished


def test_status_read_failure_waits_for_other_reads():
    provider = SlowReadProvider()

    async def go():
        with pytest.raises(StatusSnapshotError):
            await service.get_signers_status("env", provider)
        return pending_tasks()

    assert asyncio.run(go()) == []
    assert provider.documents_finished
