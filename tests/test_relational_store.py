"""Tests for the stored-procedure patient store against a fake engine."""

from datetime import date, datetime

import pytest
from sqlalchemy.exc import OperationalError

from database.connection import PoolState
from models.patient import PatientStatus
from services.patient_store import PatientStoreError
from services.relational_store import RelationalPatientStore

PATIENT_ROW = {
    "Id": 12,
    "FirstName": "John",
    "LastName": "Doe",
    "DateOfBirth": datetime(1985, 6, 15, 0, 0),
    "Gender": "Male",
    "Phone": "(555) 123-4567",
    "Email": "john.doe@email.com",
    "Address": "123 Main St",
    "BloodType": "O+",
    "Allergies": "Penicillin",
    "EmergencyContact": "Jane Doe",
    "EmergencyPhone": "(555) 987-6543",
    "InsuranceProvider": "Blue Cross",
    "InsuranceNumber": "BC123456789",
    "MedicalHistory": "Hypertension",
    "Status": "Active",
    "CreatedDate": datetime(2024, 1, 1, 9, 30),
    "UpdatedDate": datetime(2024, 2, 1, 9, 30),
}

SPARSE_ROW = {
    "Id": 13,
    "FirstName": "Sam",
    "LastName": None,
    "DateOfBirth": None,
    "Gender": None,
    "Phone": None,
    "Email": None,
    "Address": None,
    "BloodType": None,
    "Allergies": None,
    "EmergencyContact": None,
    "EmergencyPhone": None,
    "InsuranceProvider": None,
    "InsuranceNumber": None,
    "MedicalHistory": None,
    "Status": None,
    "CreatedDate": None,
    "UpdatedDate": None,
}


async def test_get_all_maps_procedure_rows(relational_store, engine_factory):
    engine_factory.results["GetAllPatients"] = [PATIENT_ROW]

    patients = await relational_store.get_all()

    assert engine_factory.calls == [("EXEC GetAllPatients", {})]
    patient = patients[0]
    assert patient.id == 12
    assert patient.full_name == "John Doe"
    assert patient.date_of_birth == "1985-06-15"
    assert patient.status == PatientStatus.ACTIVE
    assert patient.created_date == datetime(2024, 1, 1, 9, 30)


async def test_missing_columns_become_empty_strings(relational_store, engine_factory):
    engine_factory.results["GetAllPatients"] = [SPARSE_ROW]

    (patient,) = await relational_store.get_all()

    assert patient.last_name == ""
    assert patient.date_of_birth == ""
    assert patient.status == PatientStatus.ACTIVE
    assert patient.created_date is None


async def test_date_of_birth_as_date_is_normalized(relational_store, engine_factory):
    engine_factory.results["GetAllPatients"] = [
        dict(PATIENT_ROW, DateOfBirth=date(2001, 2, 3))
    ]

    (patient,) = await relational_store.get_all()

    assert patient.date_of_birth == "2001-02-03"


async def test_search_passes_term(relational_store, engine_factory):
    engine_factory.results["SearchPatients"] = [PATIENT_ROW]

    patients = await relational_store.search("doe")

    assert engine_factory.calls == [
        ("EXEC SearchPatients @SearchTerm = :SearchTerm", {"SearchTerm": "doe"})
    ]
    assert [p.id for p in patients] == [12]


async def test_add_sends_all_fields_and_returns_new_id(
    relational_store, engine_factory, patient_data
):
    engine_factory.results["AddPatient"] = [{"NewPatientId": 42}]

    patient = await relational_store.add(patient_data)

    sql, params = engine_factory.calls[0]
    assert sql.startswith("EXEC AddPatient @FirstName = :FirstName")
    assert len(params) == 15
    assert params["FirstName"] == "Ada"
    assert params["DateOfBirth"] == "1990-12-10"
    assert params["Status"] == "Active"
    assert patient.id == 42
    assert patient.data() == patient_data
    assert patient.created_date == patient.updated_date


async def test_add_sends_blank_date_as_null(relational_store, engine_factory, patient_data):
    engine_factory.results["AddPatient"] = [{"NewPatientId": 1}]

    await relational_store.add(patient_data.model_copy(update={"date_of_birth": ""}))

    assert engine_factory.calls[0][1]["DateOfBirth"] is None


async def test_update_passes_id(relational_store, engine_factory, patient_data):
    patient = await relational_store.update(7, patient_data)

    sql, params = engine_factory.calls[0]
    assert sql.startswith("EXEC UpdatePatient @Id = :Id, @FirstName = :FirstName")
    assert params["Id"] == 7
    assert len(params) == 16
    assert patient.id == 7
    assert patient.updated_date is not None
    assert patient.data() == patient_data


async def test_delete_calls_procedure(relational_store, engine_factory):
    await relational_store.delete(5)

    assert engine_factory.calls == [("EXEC DeletePatient @Id = :Id", {"Id": 5})]


async def test_statistics(relational_store, engine_factory):
    engine_factory.results["GetPatientStatistics"] = [
        {
            "TotalPatients": 10,
            "ActivePatients": 8,
            "InactivePatients": 2,
            "ActiveMale": 4,
            "ActiveFemale": None,
        }
    ]

    stats = await relational_store.get_statistics()

    assert stats.total_patients == 10
    assert stats.active_patients == 8
    assert stats.inactive_patients == 2
    assert stats.active_male == 4
    assert stats.active_female == 0


async def test_statistics_with_no_row(relational_store):
    stats = await relational_store.get_statistics()

    assert stats.total_patients == 0


async def test_statistics_failure_propagates(relational_store, engine_factory):
    engine_factory.failures.append(OperationalError("EXEC", {}, Exception("down")))

    with pytest.raises(PatientStoreError, match="Failed to fetch statistics"):
        await relational_store.get_statistics()


@pytest.mark.parametrize(
    "operation, message",
    [
        (lambda store, data: store.get_all(), "Failed to fetch patients"),
        (lambda store, data: store.search("x"), "Failed to search patients"),
        (lambda store, data: store.add(data), "Failed to add patient"),
        (lambda store, data: store.update(1, data), "Failed to update patient"),
        (lambda store, data: store.delete(1), "Failed to delete patient"),
    ],
)
async def test_failures_reset_pool(
    relational_store, engine_factory, patient_data, operation, message
):
    engine_factory.failures.append(OperationalError("EXEC", {}, Exception("down")))

    with pytest.raises(PatientStoreError, match=message):
        await operation(relational_store, patient_data)

    assert relational_store.pool.state == PoolState.FAILED
    assert engine_factory.engines[0].disposed


async def test_next_call_after_failure_uses_fresh_engine(relational_store, engine_factory):
    engine_factory.failures.append(OperationalError("EXEC", {}, Exception("down")))
    with pytest.raises(PatientStoreError):
        await relational_store.get_all()

    engine_factory.results["GetAllPatients"] = [PATIENT_ROW]
    patients = await relational_store.get_all()

    assert len(engine_factory.engines) == 2
    assert relational_store.pool.state == PoolState.CONNECTED
    assert [p.id for p in patients] == [12]


async def test_ping(relational_store, engine_factory):
    assert await relational_store.ping() is True
    assert engine_factory.calls[-1][0] == "SELECT 1"

    engine_factory.failures.append(OperationalError("SELECT 1", {}, Exception("down")))
    assert await relational_store.ping() is False


async def test_close_disposes_pool(relational_store, engine_factory):
    await relational_store.get_all()

    await relational_store.close()

    assert engine_factory.engines[0].disposed
    assert relational_store.pool.state == PoolState.UNCONNECTED


def test_store_is_a_patient_store(pool):
    from services.patient_store import PatientStore

    assert isinstance(RelationalPatientStore(pool), PatientStore)
