"""
Application settings loaded from the environment
"""

import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv()

STORAGE_BACKENDS = ("relational", "file", "local")
LOCAL_STORAGE_BACKENDS = ("memory", "redis")
DELETE_POLICIES = ("soft", "hard")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    app_name: str = "Patient Records API"
    environment: str = "development"
    log_level: str = "INFO"
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    # Storage wiring
    storage_backend: str = "relational"
    delete_policy: str = "soft"
    data_file: str = "data/patients.json"
    local_storage_backend: str = "memory"
    local_storage_key: str = "patient-management-data"
    local_storage_latency: float = 0.1
    redis_url: str = "redis://localhost:6379/0"

    # SQL Server
    database_url: Optional[str] = None
    db_server: str = "localhost"
    db_name: str = "PatientManagementDB"
    db_user: Optional[str] = "sa"
    db_password: Optional[str] = None
    db_driver: str = "ODBC Driver 18 for SQL Server"
    db_encrypt: bool = True
    db_trust_server_certificate: bool = True
    db_pool_size: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 1800

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("storage_backend")
    @classmethod
    def check_storage_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in STORAGE_BACKENDS:
            raise ValueError(
                f"STORAGE_BACKEND must be one of {', '.join(STORAGE_BACKENDS)}"
            )
        return v

    @field_validator("local_storage_backend")
    @classmethod
    def check_local_storage_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in LOCAL_STORAGE_BACKENDS:
            raise ValueError(
                f"LOCAL_STORAGE_BACKEND must be one of {', '.join(LOCAL_STORAGE_BACKENDS)}"
            )
        return v

    @field_validator("delete_policy")
    @classmethod
    def check_delete_policy(cls, v: str) -> str:
        v = v.lower()
        if v not in DELETE_POLICIES:
            raise ValueError(f"DELETE_POLICY must be one of {', '.join(DELETE_POLICIES)}")
        return v

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls.model_fields
        values = {
            "app_name": os.getenv("APP_NAME", defaults["app_name"].default),
            "environment": os.getenv("ENVIRONMENT", defaults["environment"].default),
            "log_level": os.getenv("LOG_LEVEL", defaults["log_level"].default),
            "storage_backend": os.getenv(
                "STORAGE_BACKEND", defaults["storage_backend"].default
            ),
            "delete_policy": os.getenv("DELETE_POLICY", defaults["delete_policy"].default),
            "data_file": os.getenv("DATA_FILE", defaults["data_file"].default),
            "local_storage_backend": os.getenv(
                "LOCAL_STORAGE_BACKEND", defaults["local_storage_backend"].default
            ),
            "local_storage_key": os.getenv(
                "LOCAL_STORAGE_KEY", defaults["local_storage_key"].default
            ),
            "local_storage_latency": os.getenv(
                "LOCAL_STORAGE_LATENCY", defaults["local_storage_latency"].default
            ),
            "redis_url": os.getenv("REDIS_URL", defaults["redis_url"].default),
            "database_url": os.getenv("DATABASE_URL") or None,
            "db_server": os.getenv("DB_SERVER", defaults["db_server"].default),
            "db_name": os.getenv("DB_NAME", defaults["db_name"].default),
            "db_user": os.getenv("DB_USER", defaults["db_user"].default) or None,
            "db_password": os.getenv("DB_PASSWORD") or None,
            "db_driver": os.getenv("DB_DRIVER", defaults["db_driver"].default),
            "db_encrypt": _env_bool("DB_ENCRYPT", defaults["db_encrypt"].default),
            "db_trust_server_certificate": _env_bool(
                "DB_TRUST_SERVER_CERTIFICATE",
                defaults["db_trust_server_certificate"].default,
            ),
            "db_pool_size": os.getenv("DB_POOL_SIZE", defaults["db_pool_size"].default),
            "db_pool_timeout": os.getenv(
                "DB_POOL_TIMEOUT", defaults["db_pool_timeout"].default
            ),
            "db_pool_recycle": os.getenv(
                "DB_POOL_RECYCLE", defaults["db_pool_recycle"].default
            ),
        }
        cors_origins = os.getenv("CORS_ORIGINS")
        if cors_origins:
            values["cors_origins"] = cors_origins
        return cls(**values)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings read once per process"""
    return Settings.from_env()
