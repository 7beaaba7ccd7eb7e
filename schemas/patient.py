"""
Patient Pydantic schemas for request/response validation
"""

from pydantic import BaseModel

from models.patient import Patient, PatientData, PatientStatistics


class PatientCreate(PatientData):
    pass


class PatientUpdate(PatientData):
    pass


class PatientResponse(Patient):
    pass


class PatientMutationResponse(Patient):
    message: str


class StatisticsResponse(PatientStatistics):
    pass


class MessageResponse(BaseModel):
    message: str
