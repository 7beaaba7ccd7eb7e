"""
Patient storage contract shared by every backend
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional, Union

from pydantic import TypeAdapter, ValidationError

from database.seed_data import sample_patients
from models.patient import Patient, PatientData, PatientStatistics, PatientStatus

logger = logging.getLogger(__name__)

_patient_list = TypeAdapter(List[Patient])


class PatientStoreError(Exception):
    """A storage operation failed; `message` is safe to show to users."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PatientNotFoundError(PatientStoreError):
    def __init__(self, patient_id: int):
        super().__init__("Patient not found")
        self.patient_id = patient_id


class DeletePolicy(str, Enum):
    SOFT = "soft"
    HARD = "hard"


class PatientStore(ABC):
    """Operations every patient backend provides"""

    @abstractmethod
    async def get_all(self) -> List[Patient]:
        """Active patients in storage order"""

    @abstractmethod
    async def search(self, term: str) -> List[Patient]:
        """Active patients whose name, email or phone contains `term`"""

    @abstractmethod
    async def add(self, data: PatientData) -> Patient:
        pass

    @abstractmethod
    async def update(self, patient_id: int, data: PatientData) -> Patient:
        pass

    @abstractmethod
    async def delete(self, patient_id: int) -> None:
        pass

    @abstractmethod
    async def get_statistics(self) -> PatientStatistics:
        pass

    async def close(self) -> None:
        pass


def matches_search(patient: Patient, term: str) -> bool:
    term = term.lower()
    return (
        term in patient.first_name.lower()
        or term in patient.last_name.lower()
        or term in patient.email.lower()
        or term in patient.phone
    )


def utc_now(previous: Optional[datetime] = None) -> datetime:
    """Current UTC time, nudged past `previous` so update stamps always advance."""
    now = datetime.now(timezone.utc)
    if previous is not None:
        if previous.tzinfo is None:
            previous = previous.replace(tzinfo=timezone.utc)
        if now <= previous:
            now = previous + timedelta(microseconds=1)
    return now


class DocumentPatientStore(PatientStore):
    """
    A store that keeps every patient in a single JSON document.

    Subclasses only move text in and out of their medium through
    `_read_raw()` / `_write_raw()` / `_remove_raw()`; everything else
    (seeding, filtering, id assignment, soft delete) lives here.

    `_read_raw()` returns None when no document exists yet, otherwise the
    document as text or undecoded bytes. The hooks raise PatientStoreError
    for I/O failures.

    Every load-modify-save runs under one lock, so concurrent calls within a
    process never compute the same id or overwrite each other's records.
    """

    seed_count = 2

    def __init__(self, delete_policy: DeletePolicy = DeletePolicy.SOFT):
        self.delete_policy = DeletePolicy(delete_policy)
        self._lock = asyncio.Lock()

    @abstractmethod
    async def _read_raw(self) -> Optional[Union[str, bytes]]:
        pass

    @abstractmethod
    async def _write_raw(self, text: str) -> None:
        pass

    @abstractmethod
    async def _remove_raw(self) -> None:
        pass

    def _seed(self) -> List[Patient]:
        return sample_patients(self.seed_count)

    async def _load(self) -> List[Patient]:
        raw = await self._read_raw()
        if raw is not None:
            try:
                return _patient_list.validate_json(raw)
            except (ValidationError, UnicodeDecodeError) as exc:
                # Corrupt documents are replaced by seed data; the old contents are lost
                logger.warning(
                    "Stored patient data is malformed, reinitializing with sample data "
                    "(existing records discarded): %s",
                    exc,
                )
        patients = self._seed()
        await self._save(patients)
        return patients

    async def _save(self, patients: List[Patient]) -> None:
        await self._write_raw(self._dump(patients))

    @staticmethod
    def _dump(patients: List[Patient]) -> str:
        return json.dumps([p.to_dict() for p in patients], indent=2)

    @staticmethod
    def _index_of(patients: List[Patient], patient_id: int) -> int:
        for index, patient in enumerate(patients):
            if patient.id == patient_id:
                return index
        raise PatientNotFoundError(patient_id)

    async def get_all(self) -> List[Patient]:
        async with self._lock:
            patients = await self._load()
        return [p for p in patients if p.is_active]

    async def search(self, term: str) -> List[Patient]:
        async with self._lock:
            patients = await self._load()
        return [p for p in patients if p.is_active and matches_search(p, term)]

    async def get(self, patient_id: int) -> Patient:
        """Look up one patient by id regardless of status"""
        async with self._lock:
            patients = await self._load()
        return patients[self._index_of(patients, patient_id)]

    async def add(self, data: PatientData) -> Patient:
        async with self._lock:
            patients = await self._load()
            new_id = max((p.id for p in patients), default=0) + 1
            now = utc_now()
            patient = Patient(
                **data.model_dump(), id=new_id, created_date=now, updated_date=now
            )
            patients.append(patient)
            await self._save(patients)
        logger.info("Added patient %s", new_id)
        return patient

    async def update(self, patient_id: int, data: PatientData) -> Patient:
        async with self._lock:
            patients = await self._load()
            index = self._index_of(patients, patient_id)
            current = patients[index]
            updated = Patient(
                **data.model_dump(),
                id=patient_id,
                created_date=current.created_date,
                updated_date=utc_now(current.updated_date),
            )
            patients[index] = updated
            await self._save(patients)
        logger.info("Updated patient %s", patient_id)
        return updated

    async def delete(self, patient_id: int) -> None:
        async with self._lock:
            patients = await self._load()
            index = self._index_of(patients, patient_id)
            if self.delete_policy == DeletePolicy.HARD:
                del patients[index]
            else:
                current = patients[index]
                patients[index] = current.model_copy(
                    update={
                        "status": PatientStatus.INACTIVE,
                        "updated_date": utc_now(current.updated_date),
                    }
                )
            await self._save(patients)
        logger.info("Deleted patient %s (%s)", patient_id, self.delete_policy.value)

    async def get_statistics(self) -> PatientStatistics:
        try:
            async with self._lock:
                patients = await self._load()
        except PatientStoreError as exc:
            logger.error("Error fetching statistics: %s", exc)
            return PatientStatistics()
        return PatientStatistics.from_patients(patients)

    async def export_data(self) -> str:
        """Every stored patient, any status, as indented JSON"""
        async with self._lock:
            patients = await self._load()
        return self._dump(patients)

    async def import_data(self, json_data: str) -> None:
        """Replace the stored document with `json_data`"""
        try:
            patients = _patient_list.validate_json(json_data)
        except ValidationError as exc:
            raise PatientStoreError("Invalid JSON data") from exc
        async with self._lock:
            await self._save(patients)
        logger.info("Imported %d patients", len(patients))

    async def clear_all(self) -> None:
        async with self._lock:
            await self._remove_raw()
