"""
Patient store backed by SQL Server stored procedures
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Mapping

from sqlalchemy import text

from database.connection import ConnectionPool
from models.patient import Patient, PatientData, PatientStatistics, PatientStatus
from services.patient_store import PatientStore, PatientStoreError, utc_now

logger = logging.getLogger(__name__)

# Procedure parameter -> PatientData attribute, in procedure signature order
PATIENT_PARAMETERS = [
    ("FirstName", "first_name"),
    ("LastName", "last_name"),
    ("DateOfBirth", "date_of_birth"),
    ("Gender", "gender"),
    ("Phone", "phone"),
    ("Email", "email"),
    ("Address", "address"),
    ("BloodType", "blood_type"),
    ("Allergies", "allergies"),
    ("EmergencyContact", "emergency_contact"),
    ("EmergencyPhone", "emergency_phone"),
    ("InsuranceProvider", "insurance_provider"),
    ("InsuranceNumber", "insurance_number"),
    ("MedicalHistory", "medical_history"),
    ("Status", "status"),
]

STATISTICS_COLUMNS = [
    ("TotalPatients", "total_patients"),
    ("ActivePatients", "active_patients"),
    ("InactivePatients", "inactive_patients"),
    ("ActiveMale", "active_male"),
    ("ActiveFemale", "active_female"),
]


def exec_statement(procedure: str, *parameters: str):
    """`EXEC Proc @A = :A, @B = :B` with bound parameters"""
    if not parameters:
        return text(f"EXEC {procedure}")
    assignments = ", ".join(f"@{name} = :{name}" for name in parameters)
    return text(f"EXEC {procedure} {assignments}")


GET_ALL_PATIENTS = exec_statement("GetAllPatients")
SEARCH_PATIENTS = exec_statement("SearchPatients", "SearchTerm")
ADD_PATIENT = exec_statement("AddPatient", *(name for name, _ in PATIENT_PARAMETERS))
UPDATE_PATIENT = exec_statement(
    "UpdatePatient", "Id", *(name for name, _ in PATIENT_PARAMETERS)
)
DELETE_PATIENT = exec_statement("DeletePatient", "Id")
GET_PATIENT_STATISTICS = exec_statement("GetPatientStatistics")


def _date_only(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).split("T")[0]


def row_to_patient(row: Mapping[str, Any]) -> Patient:
    fields = {
        attribute: row.get(column) or ""
        for column, attribute in PATIENT_PARAMETERS
        if column not in ("DateOfBirth", "Status")
    }
    return Patient(
        id=row["Id"],
        date_of_birth=_date_only(row.get("DateOfBirth")),
        status=row.get("Status") or PatientStatus.ACTIVE,
        created_date=row.get("CreatedDate"),
        updated_date=row.get("UpdatedDate"),
        **fields,
    )


def patient_parameters(data: PatientData) -> Dict[str, Any]:
    values = data.model_dump()
    params = {name: values[attribute] for name, attribute in PATIENT_PARAMETERS}
    params["Status"] = data.status.value
    # Blank dates go to the procedure as NULL rather than an unparseable string
    params["DateOfBirth"] = data.date_of_birth or None
    return params


class RelationalPatientStore(PatientStore):
    """
    Runs the patient procedures through a ConnectionPool.

    Whatever the procedures do (soft or hard delete, which rows count as
    active) is decided by the database; this class only passes values through.
    """

    def __init__(self, pool: ConnectionPool):
        self.pool = pool

    async def _fetch_all(self, statement, params=None) -> List[Mapping[str, Any]]:
        async with self.pool.acquire() as conn:
            result = await conn.execute(statement, params or {})
            return list(result.mappings().all())

    async def get_all(self) -> List[Patient]:
        try:
            rows = await self._fetch_all(GET_ALL_PATIENTS)
            return [row_to_patient(row) for row in rows]
        except Exception as exc:
            logger.error("Error fetching patients: %s", exc)
            raise PatientStoreError("Failed to fetch patients") from exc

    async def search(self, term: str) -> List[Patient]:
        try:
            rows = await self._fetch_all(SEARCH_PATIENTS, {"SearchTerm": term})
            return [row_to_patient(row) for row in rows]
        except Exception as exc:
            logger.error("Error searching patients: %s", exc)
            raise PatientStoreError("Failed to search patients") from exc

    async def add(self, data: PatientData) -> Patient:
        try:
            rows = await self._fetch_all(ADD_PATIENT, patient_parameters(data))
            new_id = rows[0]["NewPatientId"]
        except Exception as exc:
            logger.error("Error adding patient: %s", exc)
            raise PatientStoreError("Failed to add patient") from exc

        now = utc_now()
        logger.info("Added patient %s", new_id)
        return Patient(
            **data.model_dump(), id=new_id, created_date=now, updated_date=now
        )

    async def update(self, patient_id: int, data: PatientData) -> Patient:
        params = patient_parameters(data)
        params["Id"] = patient_id
        try:
            async with self.pool.acquire() as conn:
                await conn.execute(UPDATE_PATIENT, params)
        except Exception as exc:
            logger.error("Error updating patient: %s", exc)
            raise PatientStoreError("Failed to update patient") from exc

        logger.info("Updated patient %s", patient_id)
        return Patient(**data.model_dump(), id=patient_id, updated_date=utc_now())

    async def delete(self, patient_id: int) -> None:
        try:
            async with self.pool.acquire() as conn:
                await conn.execute(DELETE_PATIENT, {"Id": patient_id})
        except Exception as exc:
            logger.error("Error deleting patient: %s", exc)
            raise PatientStoreError("Failed to delete patient") from exc
        logger.info("Deleted patient %s", patient_id)

    async def get_statistics(self) -> PatientStatistics:
        try:
            rows = await self._fetch_all(GET_PATIENT_STATISTICS)
        except Exception as exc:
            logger.error("Error fetching statistics: %s", exc)
            raise PatientStoreError("Failed to fetch statistics") from exc

        stats = rows[0] if rows else {}
        return PatientStatistics(
            **{
                attribute: stats.get(column) or 0
                for column, attribute in STATISTICS_COLUMNS
            }
        )

    async def ping(self) -> bool:
        """True when the database answers a trivial query"""
        try:
            async with self.pool.acquire() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as exc:
            logger.error("Connection test failed: %s", exc)
            return False

    async def close(self) -> None:
        await self.pool.dispose()
