"""
Sample patients written to an empty document store
"""

from datetime import datetime, timezone
from typing import List

from models.patient import Patient

SAMPLE_PATIENTS = [
    {
        "first_name": "John",
        "last_name": "Doe",
        "date_of_birth": "1985-06-15",
        "gender": "Male",
        "phone": "(555) 123-4567",
        "email": "john.doe@email.com",
        "address": "123 Main St, City, State 12345",
        "blood_type": "O+",
        "allergies": "Penicillin",
        "emergency_contact": "Jane Doe",
        "emergency_phone": "(555) 987-6543",
        "insurance_provider": "Blue Cross",
        "insurance_number": "BC123456789",
        "medical_history": "Hypertension, managed with medication",
    },
    {
        "first_name": "Sarah",
        "last_name": "Johnson",
        "date_of_birth": "1992-03-22",
        "gender": "Female",
        "phone": "(555) 234-5678",
        "email": "sarah.johnson@email.com",
        "address": "456 Oak Ave, City, State 12345",
        "blood_type": "A-",
        "allergies": "None known",
        "emergency_contact": "Mike Johnson",
        "emergency_phone": "(555) 876-5432",
        "insurance_provider": "Aetna",
        "insurance_number": "AE987654321",
        "medical_history": "No significant medical history",
    },
    {
        "first_name": "Michael",
        "last_name": "Brown",
        "date_of_birth": "1978-11-08",
        "gender": "Male",
        "phone": "(555) 345-6789",
        "email": "michael.brown@email.com",
        "address": "789 Pine St, City, State 12345",
        "blood_type": "B+",
        "allergies": "Shellfish",
        "emergency_contact": "Lisa Brown",
        "emergency_phone": "(555) 765-4321",
        "insurance_provider": "Cigna",
        "insurance_number": "CG456789123",
        "medical_history": "Type 2 Diabetes, well controlled",
    },
]


def sample_patients(count: int) -> List[Patient]:
    """First `count` sample patients, all active, ids starting at 1."""
    now = datetime.now(timezone.utc)
    return [
        Patient(id=index, created_date=now, updated_date=now, **fields)
        for index, fields in enumerate(SAMPLE_PATIENTS[:count], start=1)
    ]
