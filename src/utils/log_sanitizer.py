"""Log sanitization utility to keep credentials out of log output.

Registration and login bodies carry passwords and responses carry JWTs; both
go through ``sanitize_for_logging`` before they reach a logger.

Usage:
    from src.utils.log_sanitizer import sanitize_for_logging

    logger.info(f"Register request: {sanitize_for_logging(data)}")
"""

import re
from typing import Any, Dict, List, Union


# Sensitive field names (case-insensitive)
SENSITIVE_FIELDS = {
    "password",
    "passwd",
    "pwd",
    "password_hash",
    "secret",
    "token",
    "access_token",
    "refresh_token",
    "bearer",
    "authorization",
    "auth_token",
    "cookie",
    "jwt_secret",
}

# Regex patterns for sensitive data in strings
SENSITIVE_PATTERNS = [
    # Bearer tokens
    (re.compile(r"Bearer\s+([a-zA-Z0-9._-]+)", re.IGNORECASE), "Bearer [REDACTED]"),
    # Bare JWTs (header.payload.signature, base64url)
    (
        re.compile(r"\beyJ[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+"),
        "[JWT]",
    ),
    # werkzeug password hashes
    (re.compile(r"\b(?:scrypt|pbkdf2):[^\s'\"]+"), "[PASSWORD_HASH]"),
]


def sanitize_string(value: str) -> str:
    """Replace bearer tokens, bare JWTs and password hashes inside ``value``."""
    if not isinstance(value, str):
        return value

    result = value
    for pattern, replacement in SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)

    return result


def sanitize_dict(data: Dict[str, Any], max_depth: int = 5) -> Dict[str, Any]:
    """Copy of ``data`` with credential-bearing keys redacted.

    Nested dicts and lists are walked up to ``max_depth`` levels; string values
    under other keys still go through :func:`sanitize_string`.
    """
    if max_depth <= 0:
        return {"...": "max_depth_reached"}

    sanitized = {}
    for key, value in data.items():
        if str(key).lower() in SENSITIVE_FIELDS:
            sanitized[key] = "[REDACTED]"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, max_depth - 1)
        elif isinstance(value, list):
            sanitized[key] = sanitize_list(value, max_depth - 1)
        elif isinstance(value, str):
            sanitized[key] = sanitize_string(value)
        else:
            sanitized[key] = value

    return sanitized


def sanitize_list(data: List[Any], max_depth: int = 5) -> List[Any]:
    if max_depth <= 0:
        return ["...max_depth_reached..."]

    sanitized = []
    for item in data:
        if isinstance(item, dict):
            sanitized.append(sanitize_dict(item, max_depth - 1))
        elif isinstance(item, list):
            sanitized.append(sanitize_list(item, max_depth - 1))
        elif isinstance(item, str):
            sanitized.append(sanitize_string(item))
        else:
            sanitized.append(item)

    return sanitized


def sanitize_for_logging(
    data: Union[str, Dict, List, Any], max_depth: int = 5
) -> Union[str, Dict, List, Any]:
    """Sanitize any data structure for safe logging.

    Examples:
        >>> sanitize_for_logging({"password": "secret123", "email": "qa@company.com"})
        {'password': '[REDACTED]', 'email': 'qa@company.com'}

        >>> sanitize_for_logging("Authorization: Bearer abc.def.ghi")
        'Authorization: Bearer [REDACTED]'
    """
    if isinstance(data, dict):
        return sanitize_dict(data, max_depth)
    elif isinstance(data, list):
        return sanitize_list(data, max_depth)
    elif isinstance(data, str):
        return sanitize_string(data)
    else:
        return data
