from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Twilio (SMS to callers and the owner)
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_phone_number: str = ""

    # Cal.com
    calcom_api_key: str = ""
    calcom_event_type_id: str = ""
    calcom_api_version: str = "2024-08-13"

    # Business identity, spoken and texted verbatim
    owner_phone_number: str = ""
    owner_name: str = "the owner"
    business_name: str = ""

    # Vapi shared secret; empty disables the check
    vapi_secret: str = ""

    # Vercel KV / Upstash REST
    kv_rest_api_url: str = ""
    kv_rest_api_token: str = ""
    record_ttl_seconds: int = 2592000
    recent_calls_limit: int = 200

    # App
    timezone: str = "America/Chicago"
    http_timeout: float = 8.0
    lead_email_domain: str = "leads.callcovered.com"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
            raise ValueError(f"unknown timezone {value!r}") from exc
        return value

    @property
    def kv_configured(self) -> bool:
        return bool(self.kv_rest_api_url and self.kv_rest_api_token)

    @property
    def twilio_configured(self) -> bool:
        return bool(self.twilio_account_sid and self.twilio_auth_token)


@lru_cache
def get_settings() -> Settings:
    return Settings()
