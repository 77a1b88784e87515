"""
CareLink Services — Application Configuration
===============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; credentials are decoded at startup.

Design Decision:
    We use pydantic-settings instead of raw os.getenv() because type coercion
    (str → int, str → bool) and validation happen once, at startup, instead of
    wherever a value is first read.
"""

import base64
import binascii
import json
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Production deployments MUST provide FIREBASE_CREDENTIALS whenever a
    Firestore-backed store is selected; everything else has a usable default.
    """

    # ── Deployment ────────────────────────────────────────────────────────
    # What: Which routers this process mounts
    # caretaker: /api/caretaker*, partner: /partner/*, all: both
    service: Literal["caretaker", "partner", "all"] = Field(default="all")

    # ── Document Store ────────────────────────────────────────────────────
    # What: Base64-encoded Firebase service account JSON
    # Format: base64(json.dumps(service_account_dict))
    firebase_credentials: str = Field(
        default="",
        description="Base64-encoded Firebase service account JSON",
    )

    # What: Backend for caretaker, user and log documents
    # memory: process-local, for local development only
    document_store_backend: Literal["firestore", "memory"] = Field(default="firestore")

    # ── Partner Codes ─────────────────────────────────────────────────────
    # What: Backend for the code → user id mapping
    # memory: lost on restart and not shared between instances
    partner_code_backend: Literal["memory", "firestore"] = Field(default="memory")

    # What: Optional code lifetime in seconds; unset means codes never expire
    partner_code_ttl_seconds: Optional[int] = Field(default=None, ge=1)

    # ── CORS ──────────────────────────────────────────────────────────────
    # What: The single caller origin allowed to send credentialed requests
    cors_origin: str = Field(default="http://middleware:3001")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits a comma-separated origin value into the list CORSMiddleware expects."""
        return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=4004, ge=1, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Error Reporting ───────────────────────────────────────────────────
    # What: Return the store's error text to callers in 500 responses
    # Turn off to keep store internals in server logs only
    expose_error_details: bool = Field(default=True)

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def serves_caretakers(self) -> bool:
        return self.service in ("caretaker", "all")

    @property
    def serves_partner_codes(self) -> bool:
        return self.service in ("partner", "all")

    def firebase_service_account(self) -> Dict[str, Any]:
        """
        Decode FIREBASE_CREDENTIALS into a service account dict.

        Raises:
            ValueError: The variable is unset, not base64, or not a JSON object.
        """
        if not self.firebase_credentials:
            raise ValueError(
                "FIREBASE_CREDENTIALS is not set. "
                "Provide the base64-encoded Firebase service account JSON."
            )
        try:
            raw = base64.b64decode(self.firebase_credentials, validate=True)
            account = json.loads(raw.decode("utf-8"))
        except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValueError(f"FIREBASE_CREDENTIALS could not be decoded: {e}") from e
        if not isinstance(account, dict):
            raise ValueError("FIREBASE_CREDENTIALS must decode to a JSON object")
        return account


# Singleton instance, imported throughout the application
settings = Settings()
