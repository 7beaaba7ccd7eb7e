"""
Patient management controller
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from schemas.patient import (
    MessageResponse,
    PatientCreate,
    PatientMutationResponse,
    PatientResponse,
    PatientUpdate,
    StatisticsResponse,
)
from services.patient_store import PatientNotFoundError, PatientStore, PatientStoreError
from services.store_factory import get_patient_store

router = APIRouter()


def store_error(exc: PatientStoreError, detail: str) -> HTTPException:
    if isinstance(exc, PatientNotFoundError):
        return HTTPException(status_code=404, detail="Patient not found")
    return HTTPException(status_code=500, detail=detail)


@router.get("", response_model=List[PatientResponse])
async def list_patients(
    search: Optional[str] = Query(None, description="Search by name, email or phone"),
    store: PatientStore = Depends(get_patient_store),
):
    """
    List active patients, optionally filtered by a search term
    """
    try:
        if search and search.strip():
            patients = await store.search(search)
        else:
            patients = await store.get_all()
    except PatientStoreError as exc:
        raise store_error(exc, "Failed to fetch patients")

    return [PatientResponse.model_validate(p.model_dump()) for p in patients]


@router.get("/statistics", response_model=StatisticsResponse)
async def get_statistics(store: PatientStore = Depends(get_patient_store)):
    """
    Patient counts by status and gender
    """
    try:
        stats = await store.get_statistics()
    except PatientStoreError as exc:
        raise store_error(exc, "Failed to fetch statistics")

    return StatisticsResponse.model_validate(stats.model_dump())


@router.post("", response_model=PatientMutationResponse, status_code=201)
async def create_patient(
    patient_data: PatientCreate,
    store: PatientStore = Depends(get_patient_store),
):
    """
    Create a new patient record
    """
    try:
        patient = await store.add(patient_data)
    except PatientStoreError as exc:
        raise store_error(exc, "Failed to add patient")

    return PatientMutationResponse(
        **patient.model_dump(), message="Patient added successfully"
    )


@router.put("/{patient_id}", response_model=PatientMutationResponse)
async def update_patient(
    patient_id: int,
    patient_data: PatientUpdate,
    store: PatientStore = Depends(get_patient_store),
):
    """
    Replace a patient's details
    """
    try:
        patient = await store.update(patient_id, patient_data)
    except PatientStoreError as exc:
        raise store_error(exc, "Failed to update patient")

    return PatientMutationResponse(
        **patient.model_dump(), message="Patient updated successfully"
    )


@router.delete("/{patient_id}", response_model=MessageResponse)
async def delete_patient(
    patient_id: int,
    store: PatientStore = Depends(get_patient_store),
):
    """
    Delete a patient record (soft or hard depending on the backend)
    """
    try:
        await store.delete(patient_id)
    except PatientStoreError as exc:
        raise store_error(exc, "Failed to delete patient")

    return MessageResponse(message="Patient deleted successfully")
