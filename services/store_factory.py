"""
Wiring of the configured patient store
"""

import logging

from fastapi import Request

from database.connection import ConnectionPool
from services.file_store import FilePatientStore
from services.local_store import (
    LocalPatientStore,
    MemoryKeyValueBackend,
    RedisKeyValueBackend,
)
from services.patient_store import DeletePolicy, DocumentPatientStore, PatientStore
from services.relational_store import RelationalPatientStore
from utils.config import Settings

logger = logging.getLogger(__name__)


def build_patient_store(settings: Settings) -> PatientStore:
    """Create the backend named by STORAGE_BACKEND"""
    delete_policy = DeletePolicy(settings.delete_policy)

    if settings.storage_backend == "relational":
        store = RelationalPatientStore(ConnectionPool.from_settings(settings))
    elif settings.storage_backend == "file":
        store = FilePatientStore(settings.data_file, delete_policy=delete_policy)
    else:
        if settings.local_storage_backend == "redis":
            backend = RedisKeyValueBackend.from_url(settings.redis_url)
        else:
            backend = MemoryKeyValueBackend()
        store = LocalPatientStore(
            backend,
            key=settings.local_storage_key,
            latency=settings.local_storage_latency,
            delete_policy=delete_policy,
        )

    if isinstance(store, DocumentPatientStore):
        policy = delete_policy.value
    else:
        policy = "decided by DeletePatient"
    logger.info(
        "Using %s patient store (delete policy: %s)", settings.storage_backend, policy
    )
    return store


def get_patient_store(request: Request) -> PatientStore:
    """FastAPI dependency returning the store created at startup"""
    return request.app.state.patient_store
