"""
Patient store backed by a JSON file on disk
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from services.patient_store import DeletePolicy, DocumentPatientStore, PatientStoreError

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path("data") / "patients.json"


class FilePatientStore(DocumentPatientStore):
    """
    Keeps all patients in one JSON file and rewrites the whole file on every
    change. Nothing guards against a second process writing the same file.
    """

    seed_count = 2

    def __init__(
        self,
        path: Union[str, Path] = DEFAULT_DATA_FILE,
        delete_policy: DeletePolicy = DeletePolicy.SOFT,
    ):
        super().__init__(delete_policy)
        self.path = Path(path)

    def _read_file(self) -> Optional[bytes]:
        # Undecoded; invalid UTF-8 counts as a malformed document
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None

    def _write_file(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(text, encoding="utf-8")

    async def _read_raw(self) -> Optional[bytes]:
        try:
            return await asyncio.to_thread(self._read_file)
        except OSError as exc:
            logger.error("Error reading %s: %s", self.path, exc)
            raise PatientStoreError("Failed to fetch patients") from exc

    async def _write_raw(self, text: str) -> None:
        try:
            await asyncio.to_thread(self._write_file, text)
        except OSError as exc:
            logger.error("Error writing %s: %s", self.path, exc)
            raise PatientStoreError("Failed to save patients") from exc

    async def _remove_raw(self) -> None:
        try:
            await asyncio.to_thread(self.path.unlink, missing_ok=True)
        except OSError as exc:
            logger.error("Error removing %s: %s", self.path, exc)
            raise PatientStoreError("Failed to clear patients") from exc
