"""
Cached patient list and statistics for a UI, with debounced search
"""

import asyncio
import logging
from typing import List, Optional

from models.patient import Patient, PatientData, PatientStatistics
from services.patient_store import PatientStore, PatientStoreError

logger = logging.getLogger(__name__)


class PatientView:
    """
    Holds what a patient table screen shows: the current rows, the
    statistics cards and the last error message.

    Searches are latest-wins. Starting a search cancels the one still in
    flight, and a cancelled search returns None without touching `patients`.
    """

    def __init__(self, store: PatientStore, debounce: float = 0.3):
        self.store = store
        self.debounce = debounce
        self.patients: List[Patient] = []
        self.statistics = PatientStatistics()
        self.error: Optional[str] = None
        self._search_task: Optional[asyncio.Task] = None

    async def load_patients(self) -> None:
        try:
            self.patients = await self.store.get_all()
            self.error = None
        except PatientStoreError as exc:
            logger.error("Error loading patients: %s", exc)
            self.error = "Failed to load patients"

    async def load_statistics(self) -> None:
        try:
            self.statistics = await self.store.get_statistics()
        except PatientStoreError as exc:
            logger.error("Error loading statistics: %s", exc)

    async def refresh(self) -> None:
        """Reload rows and statistics; either may fail without the other"""
        await self.load_patients()
        await self.load_statistics()

    async def _run_search(self, term: str) -> List[Patient]:
        if self.debounce > 0:
            await asyncio.sleep(self.debounce)
        if term.strip():
            return await self.store.search(term)
        return await self.store.get_all()

    async def search(self, term: str) -> Optional[List[Patient]]:
        """Rows matching `term`, or None if a newer search replaced this one"""
        previous = self._search_task
        if previous is not None and not previous.done():
            previous.cancel()

        task = asyncio.create_task(self._run_search(term))
        self._search_task = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task.cancelled():
            return None
        try:
            self.patients = task.result()
            self.error = None
        except PatientStoreError as exc:
            logger.error("Error searching patients: %s", exc)
            self.error = "Failed to search patients"
            return None
        return self.patients

    async def add(self, data: PatientData) -> Patient:
        patient = await self.store.add(data)
        await self.refresh()
        return patient

    async def update(self, patient_id: int, data: PatientData) -> Patient:
        patient = await self.store.update(patient_id, data)
        await self.refresh()
        return patient

    async def delete(self, patient_id: int) -> None:
        await self.store.delete(patient_id)
        await self.refresh()
