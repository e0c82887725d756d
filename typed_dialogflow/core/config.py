from functools import lru_cache
import json
import re
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_BASE_URL = "https://dialogflow.googleapis.com"

_LANGUAGE_TAG_RE = re.compile(r"^[A-Za-z]{2,3}(-[A-Za-z0-9]{2,8})*$")


def parse_language_code(value: str) -> str:
    value = value.strip()
    if not _LANGUAGE_TAG_RE.match(value):
        raise ValueError(f"Invalid language code {value!r}")
    return value


def parse_geolocation(value) -> tuple[float, float] | None:
    if value is None:
        return None
    if isinstance(value, str):
        raw = value.strip()
        if raw == "":
            return None
        try:
            parsed = json.loads(raw)
        except ValueError:
            parsed = [item.strip() for item in raw.split(",")]
        value = parsed
    if isinstance(value, (list, tuple)) and len(value) == 2:
        latitude, longitude = float(value[0]), float(value[1])
        if not (-90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0):
            raise ValueError(f"Geolocation out of range: {latitude}, {longitude}")
        return (latitude, longitude)
    raise ValueError(f"Geolocation must be 'latitude,longitude', got {value!r}")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="ignore",
        validate_by_name=True,
        populate_by_name=True,
    )

    dialogflow_project_id: str = ""
    dialogflow_access_token: str = ""
    dialogflow_session_id: str = "dev"
    dialogflow_api_base_url: str = DEFAULT_API_BASE_URL
    dialogflow_timeout_seconds: float = Field(default=8.0, gt=0)

    dialogflow_language_code: str = Field(
        default="en",
        validation_alias=AliasChoices("DIALOGFLOW_LANGUAGE_CODE", "DIALOGFLOW_LANGUAGE"),
    )
    dialogflow_geolocation_raw: str = Field(
        default="",
        validation_alias=AliasChoices("DIALOGFLOW_GEOLOCATION"),
    )

    @field_validator("dialogflow_language_code")
    @classmethod
    def _check_language_code(cls, value: str) -> str:
        return parse_language_code(value)

    @field_validator("dialogflow_geolocation_raw")
    @classmethod
    def _check_geolocation(cls, value: str) -> str:
        parse_geolocation(value)
        return value

    @field_validator("dialogflow_api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def dialogflow_geolocation(self) -> tuple[float, float] | None:
        return parse_geolocation(self.dialogflow_geolocation_raw)

    def validate_required_config(self) -> list[str]:
        """Return human-readable configuration problems (empty when usable)."""
        errors: list[str] = []
        if not self.dialogflow_session_id.strip():
            errors.append("DIALOGFLOW_SESSION_ID must not be empty")
        if not self.dialogflow_api_base_url.startswith(("https://", "http://")):
            errors.append("DIALOGFLOW_API_BASE_URL must be an http(s) URL")
        if self.dialogflow_access_token and not self.dialogflow_project_id:
            errors.append(
                "DIALOGFLOW_PROJECT_ID is required when DIALOGFLOW_ACCESS_TOKEN is set"
            )
        return errors

@lru_cache

def get_settings() -> Settings:
    return Settings()
