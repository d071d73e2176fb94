"""Security configuration constants for the TaskPilot API.

This module centralizes:
- Sensitive keys that should be sanitized from logs (credentials and the
  free text users type, which routinely contains personal details)
- Error handling security settings
"""

# Substring matches: any key containing one of these is redacted
SENSITIVE_KEYS: set[str] = {
    # Provider credentials
    "api_key",
    "apikey",
    "secret",
    "token",
    "authorization",
    "bearer",
    "password",
    "cookie",
    "x-api-key",
    "session_id",
    # Personal Identifiable Information
    "email",
    "phone",
    "address",
}

# Exact matches: user-authored content and model output derived from it
SENSITIVE_CONTENT_KEYS: set[str] = {
    "text",
    "raw_text",
    "prompt",
    "context",
    "response",
    "draft_text",
}

# Production-only error response fields
PRODUCTION_ERROR_FIELDS: set[str] = {
    "correlation_id",
    "type",
    "error_code",
}

# Development error response fields (additional fields allowed in development)
DEVELOPMENT_ERROR_FIELDS: set[str] = PRODUCTION_ERROR_FIELDS | {
    "details",
    "traceback",
    "exception_type",
    "validation_errors",
}


def get_allowed_error_fields(environment: str) -> set[str]:
    """Get allowed error response fields based on environment."""
    if environment == "production":
        return PRODUCTION_ERROR_FIELDS.copy()
    return DEVELOPMENT_ERROR_FIELDS.copy()


def is_sensitive_key(key: str) -> bool:
    """Check if a key should be considered sensitive and redacted.

    Args:
        key: The key name to check

    Returns:
        True if the key should be redacted, False otherwise
    """
    key_lower = key.lower()
    if key_lower in SENSITIVE_CONTENT_KEYS:
        return True
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)
