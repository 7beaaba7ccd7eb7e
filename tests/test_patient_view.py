"""Tests for the cached patient view and its latest-wins search."""

import asyncio

from models.patient import PatientStatistics
from services.local_store import LocalPatientStore, MemoryKeyValueBackend
from services.patient_store import PatientStoreError
from services.patient_view import PatientView


class RecordingStore(LocalPatientStore):
    def __init__(self):
        super().__init__(MemoryKeyValueBackend(), latency=0)
        self.searches = []
        self.get_all_calls = 0

    async def search(self, term):
        self.searches.append(term)
        return await super().search(term)

    async def get_all(self):
        self.get_all_calls += 1
        return await super().get_all()


class FlakyStore(LocalPatientStore):
    def __init__(self, fail_rows=False, fail_stats=False):
        super().__init__(MemoryKeyValueBackend(), latency=0)
        self.fail_rows = fail_rows
        self.fail_stats = fail_stats

    async def get_all(self):
        if self.fail_rows:
            raise PatientStoreError("Failed to fetch patients")
        return await super().get_all()

    async def search(self, term):
        raise PatientStoreError("Failed to search patients")

    async def get_statistics(self):
        if self.fail_stats:
            raise PatientStoreError("Failed to fetch statistics")
        return await super().get_statistics()


async def test_refresh_loads_rows_and_statistics():
    view = PatientView(LocalPatientStore(MemoryKeyValueBackend(), latency=0))

    await view.refresh()

    assert len(view.patients) == 3
    assert view.statistics.total_patients == 3
    assert view.error is None


async def test_refresh_keeps_statistics_when_rows_fail():
    view = PatientView(FlakyStore(fail_rows=True))

    await view.refresh()

    assert view.patients == []
    assert view.error == "Failed to load patients"
    assert view.statistics.active_patients == 3


async def test_refresh_keeps_rows_when_statistics_fail():
    view = PatientView(FlakyStore(fail_stats=True))

    await view.refresh()

    assert len(view.patients) == 3
    assert view.error is None
    assert view.statistics == PatientStatistics()


async def test_blank_search_loads_everything():
    store = RecordingStore()
    view = PatientView(store, debounce=0)

    result = await view.search("  ")

    assert len(result) == 3
    assert store.searches == []
    assert store.get_all_calls == 1


async def test_newer_search_supersedes_older_one():
    store = RecordingStore()
    view = PatientView(store, debounce=0.05)

    first = asyncio.create_task(view.search("jo"))
    await asyncio.sleep(0)
    second = asyncio.create_task(view.search("sarah"))

    assert await first is None
    result = await second
    assert [p.first_name for p in result] == ["Sarah"]
    assert store.searches == ["sarah"]
    assert view.patients == result


async def test_search_failure_sets_error():
    view = PatientView(FlakyStore(), debounce=0)

    result = await view.search("doe")

    assert result is None
    assert view.error == "Failed to search patients"


async def test_mutations_refresh_the_view(patient_data):
    view = PatientView(LocalPatientStore(MemoryKeyValueBackend(), latency=0))

    patient = await view.add(patient_data)
    assert view.statistics.total_patients == 4

    await view.delete(patient.id)
    assert patient.id not in [p.id for p in view.patients]
    assert view.statistics.inactive_patients == 1
