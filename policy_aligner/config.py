from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[1]

# bcrypt only reads the first 72 bytes of a password and rejects longer input.
MAX_PASSWORD_BYTES = 72


def check_password_length(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes.")
    return value


class Settings(BaseSettings):
    app_name: str = Field("Q-C2M2 Policy Aligner API", alias="APP_NAME")
    environment: str = Field(
        "development",
        alias="ENVIRONMENT",
        description="Runtime environment name ('development' or 'production').",
        pattern=r"^(development|production|test)$",
    )
    port: int = Field(5000, alias="PORT", ge=1, le=65535)
    log_level: str = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Python logging verbosity for application modules (e.g. INFO, DEBUG).",
    )
    database_url: str = Field(
        f"sqlite:///{PROJECT_ROOT / 'q-c2m2.db'}",
        alias="DATABASE_URL",
    )
    jwt_secret: str = Field(
        "change-me",
        alias="JWT_SECRET",
        description="Shared secret used to sign and verify access tokens.",
    )
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        24 * 60,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
        ge=1,
    )
    upload_dir: Path = Field(
        PROJECT_ROOT / "uploads",
        alias="UPLOAD_DIR",
        description="Directory where uploaded policy documents are stored.",
    )
    max_upload_bytes: int = Field(
        50 * 1024 * 1024,
        alias="MAX_UPLOAD_BYTES",
        ge=1,
        description="Largest accepted upload, in bytes.",
    )
    max_section_length: int = Field(
        1000,
        alias="MAX_SECTION_LENGTH",
        ge=1,
        description="Upper bound on characters per automatically generated document section.",
    )
    admin_username: str = Field("admin", alias="ADMIN_USERNAME")
    admin_email: str = Field("admin@qc2m2.com", alias="ADMIN_EMAIL")
    admin_password: str = Field(
        "password",
        alias="ADMIN_PASSWORD",
        description="Password given to the bootstrap admin account when the user table is empty.",
    )
    frontend_origins: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://localhost:3001",
        ],
        alias="FRONTEND_ORIGINS",
        description="Comma-separated list of allowed CORS origins for the frontend UI.",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("frontend_origins", mode="before")
    @classmethod
    def _split_origins(cls, raw_value):
        if isinstance(raw_value, str):
            return [origin.strip() for origin in raw_value.split(",") if origin.strip()]
        return raw_value

    @field_validator("environment", mode="before")
    @classmethod
    def _normalize_environment(cls, raw_value):
        if isinstance(raw_value, str):
            return raw_value.strip().lower() or "development"
        return raw_value

    @field_validator("admin_password")
    @classmethod
    def _check_admin_password(cls, value: str) -> str:
        return check_password_length(value)

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
