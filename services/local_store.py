"""
Patient store backed by a key/value store (in-process dict or Redis)
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from models.patient import Patient, PatientData, PatientStatistics
from services.patient_store import DeletePolicy, DocumentPatientStore, PatientStoreError

logger = logging.getLogger(__name__)

STORAGE_KEY = "patient-management-data"


class KeyValueBackend(ABC):
    """String keys to string values, persisted somewhere"""

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        pass

    async def close(self) -> None:
        pass


class MemoryKeyValueBackend(KeyValueBackend):
    def __init__(self, items: Optional[Dict[str, str]] = None):
        self.items = items if items is not None else {}

    async def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    async def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class RedisKeyValueBackend(KeyValueBackend):
    def __init__(self, client: aioredis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisKeyValueBackend":
        return cls(aioredis.from_url(url, decode_responses=True))

    async def get_item(self, key: str) -> Optional[str]:
        try:
            return await self.client.get(key)
        except RedisError as exc:
            logger.error("Error reading from key/value store: %s", exc)
            raise PatientStoreError("Failed to fetch patients") from exc

    async def set_item(self, key: str, value: str) -> None:
        try:
            await self.client.set(key, value)
        except RedisError as exc:
            logger.error("Error saving to key/value store: %s", exc)
            raise PatientStoreError("Failed to save patients") from exc

    async def remove_item(self, key: str) -> None:
        try:
            await self.client.delete(key)
        except RedisError as exc:
            logger.error("Error clearing key/value store: %s", exc)
            raise PatientStoreError("Failed to clear patients") from exc

    async def close(self) -> None:
        await self.client.aclose()


class LocalPatientStore(DocumentPatientStore):
    """
    Keeps all patients as one JSON value under a fixed key.

    Every contract call waits `latency` seconds first so callers see the
    same asynchronous timing they would against a remote database.
    """

    seed_count = 3

    def __init__(
        self,
        backend: Optional[KeyValueBackend] = None,
        key: str = STORAGE_KEY,
        latency: float = 0.1,
        delete_policy: DeletePolicy = DeletePolicy.SOFT,
    ):
        super().__init__(delete_policy)
        self.backend = backend if backend is not None else MemoryKeyValueBackend()
        self.key = key
        self.latency = latency

    async def _delay(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

    async def _read_raw(self) -> Optional[str]:
        return await self.backend.get_item(self.key)

    async def _write_raw(self, text: str) -> None:
        await self.backend.set_item(self.key, text)

    async def _remove_raw(self) -> None:
        await self.backend.remove_item(self.key)

    async def get_all(self) -> List[Patient]:
        await self._delay()
        return await super().get_all()

    async def search(self, term: str) -> List[Patient]:
        await self._delay()
        return await super().search(term)

    async def add(self, data: PatientData) -> Patient:
        await self._delay()
        return await super().add(data)

    async def update(self, patient_id: int, data: PatientData) -> Patient:
        await self._delay()
        return await super().update(patient_id, data)

    async def delete(self, patient_id: int) -> None:
        await self._delay()
        await super().delete(patient_id)

    async def get_statistics(self) -> PatientStatistics:
        await self._delay()
        return await super().get_statistics()

    async def close(self) -> None:
        await self.backend.close()
