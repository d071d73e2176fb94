"""Application settings, provider credentials and pipeline tuning knobs."""

import json
import os
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SUPPORTED_PROVIDERS: tuple[str, ...] = ("anthropic", "openai")


def _parse_str_list(v: object, field_name: str) -> list[str]:
    """Accept a list, CSV string, or JSON array string."""
    if isinstance(v, list):
        return [str(i).strip() for i in v]
    if isinstance(v, str):
        s = v.strip()
        if not s:
            return []
        if s.startswith("["):
            try:
                parsed = json.loads(s)
            except json.JSONDecodeError as e:
                raise ValueError(
                    f"{field_name} must be a CSV list or JSON array string"
                ) from e
            if not isinstance(parsed, list):
                raise ValueError(f"{field_name} JSON must be a list")
            return [str(i).strip() for i in parsed]
        return [i.strip() for i in s.split(",") if i.strip()]
    raise ValueError(f"Invalid {field_name} type; expected str or list[str]")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env"), env_file_encoding="utf-8")

    # App
    APP_NAME: str = "TaskPilot"
    ENVIRONMENT: str = "development"  # development | production | test

    # CORS
    CORS_ORIGINS: list[str] | str = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    ALLOW_CREDENTIALS: bool = True

    # Inference providers. A provider without a key is skipped by failover.
    ANTHROPIC_API_KEY: str | None = None
    OPENAI_API_KEY: str | None = None
    PROVIDER_PRIORITY: list[str] | str = ["anthropic", "openai"]

    # Capability identifiers per tier and provider
    ECONOMY_ANTHROPIC_MODEL: str = "claude-haiku-4-5-20251001"
    ECONOMY_OPENAI_MODEL: str = "o4-mini"
    ADVANCED_ANTHROPIC_MODEL: str = "claude-sonnet-4-5-20250929"
    ADVANCED_OPENAI_MODEL: str = "gpt-4.1"

    INFERENCE_TIMEOUT_SECONDS: float = 30.0
    INFERENCE_MAX_TOKENS: int = 2000

    # Escalation guardrails and result validation
    LOW_CONFIDENCE_THRESHOLD: float = 0.7
    SUSPICIOUS_MATCH_RATIO: float = 0.9
    SUSPICIOUS_MIN_CORPUS_SIZE: int = 10
    MAX_MATCHING_IDS: int = 100
    MAX_ESCALATIONS_PER_REQUEST: int = 1

    # Complexity analyzer thresholds
    COMPLEXITY_TOKEN_THRESHOLD: int = 1000
    COMPLEXITY_PARAGRAPH_THRESHOLD: int = 2

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: object) -> list[str]:
        return _parse_str_list(v, "CORS_ORIGINS")

    @field_validator("PROVIDER_PRIORITY", mode="before")
    @classmethod
    def assemble_provider_priority(cls, v: object) -> list[str]:
        providers = [p.lower() for p in _parse_str_list(v, "PROVIDER_PRIORITY")]
        unknown = [p for p in providers if p not in SUPPORTED_PROVIDERS]
        if unknown:
            raise ValueError(
                f"PROVIDER_PRIORITY contains unsupported providers: {unknown}"
            )
        # Drop duplicates, keep first occurrence
        return list(dict.fromkeys(providers))

    @model_validator(mode="after")
    def _validate_tuning(self) -> "Settings":
        """Reject thresholds that would make the validator meaningless."""
        if isinstance(self.CORS_ORIGINS, str):
            self.CORS_ORIGINS = self.assemble_cors_origins(self.CORS_ORIGINS)
        if self.ALLOW_CREDENTIALS and any(
            o.strip() == "*" for o in (self.CORS_ORIGINS or [])
        ):
            raise ValueError(
                "CORS configuration error: ALLOW_CREDENTIALS=True but "
                "CORS_ORIGINS contains '*'. Use explicit origins when credentials "
                "are allowed."
            )
        if not 0.0 <= self.LOW_CONFIDENCE_THRESHOLD <= 1.0:
            raise ValueError("LOW_CONFIDENCE_THRESHOLD must be within [0, 1]")
        if not 0.0 < self.SUSPICIOUS_MATCH_RATIO <= 1.0:
            raise ValueError("SUSPICIOUS_MATCH_RATIO must be within (0, 1]")
        if self.SUSPICIOUS_MIN_CORPUS_SIZE < 0 or self.MAX_MATCHING_IDS < 0:
            raise ValueError("Corpus size and match caps must be non-negative")
        if self.INFERENCE_TIMEOUT_SECONDS <= 0:
            raise ValueError("INFERENCE_TIMEOUT_SECONDS must be positive")
        # Escalation is bounded to a single advanced-tier call per request
        self.MAX_ESCALATIONS_PER_REQUEST = max(
            0, min(self.MAX_ESCALATIONS_PER_REQUEST, 1)
        )
        return self

    def api_key_for(self, provider: str) -> str | None:
        if provider == "anthropic":
            return self.ANTHROPIC_API_KEY
        if provider == "openai":
            return self.OPENAI_API_KEY
        return None


@lru_cache
def get_settings() -> Settings:
    env = os.getenv("ENVIRONMENT", "development").lower()
    if env not in {"development", "production", "test"}:
        raise ValueError("ENVIRONMENT must be 'development', 'production', or 'test'")

    if env == "production":
        env_file = ".env.prod"
    elif env == "development":
        env_file = ".env.dev"
    else:
        # test environment - no env file needed, use defaults
        env_file = ""
    if env == "production" and not (
        os.getenv("ANTHROPIC_API_KEY") or os.getenv("OPENAI_API_KEY")
    ):
        if not os.path.exists(env_file):
            raise RuntimeError(
                "At least one of ANTHROPIC_API_KEY / OPENAI_API_KEY must be set "
                "in production"
            )

    # pydantic-settings accepts a runtime-only `_env_file` kwarg
    return Settings(_env_file=env_file or None)  # type: ignore[call-arg]
