"""
Patient data model
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class PatientStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire and on disk"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class PatientData(CamelModel):
    """Everything a caller supplies when adding or updating a patient"""

    first_name: str = ""
    last_name: str = ""
    date_of_birth: str = ""
    gender: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""
    blood_type: str = ""
    allergies: str = ""
    emergency_contact: str = ""
    emergency_phone: str = ""
    insurance_provider: str = ""
    insurance_number: str = ""
    medical_history: str = ""
    status: PatientStatus = PatientStatus.ACTIVE

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def normalize_date_of_birth(cls, v):
        if v is None:
            return ""
        if isinstance(v, datetime):
            return v.date().isoformat()
        if isinstance(v, date):
            return v.isoformat()
        return v

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Patient(PatientData):
    id: int
    created_date: Optional[datetime] = None
    updated_date: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == PatientStatus.ACTIVE

    def data(self) -> PatientData:
        """The caller-editable part of this record"""
        return PatientData.model_validate(
            self.model_dump(exclude={"id", "created_date", "updated_date"})
        )

    def to_dict(self):
        return self.model_dump(mode="json", by_alias=True)


class PatientStatistics(CamelModel):
    total_patients: int = 0
    active_patients: int = 0
    inactive_patients: int = 0
    active_male: int = 0
    active_female: int = 0

    @classmethod
    def from_patients(cls, patients) -> "PatientStatistics":
        active = [p for p in patients if p.is_active]
        return cls(
            total_patients=len(patients),
            active_patients=len(active),
            inactive_patients=sum(
                1 for p in patients if p.status == PatientStatus.INACTIVE
            ),
            active_male=sum(1 for p in active if p.gender == "Male"),
            active_female=sum(1 for p in active if p.gender == "Female"),
        )
