"""ID Generation Utilities"""
import uuid
from datetime import datetime, timezone
from typing import Optional


# Record id prefix per store collection
COLLECTION_PREFIXES = {
    "users": "USR",
    "pendingUsers": "PUSR",
    "approvals": "APR",
    "notifications": "NTF",
    "auditEvents": "AUD",
}


def generate_id(prefix: Optional[str] = None) -> str:
    """
    Generate a unique ID with optional prefix

    Args:
        prefix: Optional prefix for the ID (e.g., 'APR', 'USR')

    Returns:
        Unique ID string

    Examples:
        >>> generate_id('APR')
        'APR-a1b2c3d4e5f6'
        >>> generate_id()
        'a1b2c3d4e5f6'
    """
    unique_part = uuid.uuid4().hex[:12]

    if prefix:
        return f"{prefix}-{unique_part}"
    return unique_part


def generate_record_id(collection: str) -> str:
    """Generate a store-assigned record ID for a collection"""
    return generate_id(COLLECTION_PREFIXES.get(collection))


def generate_session_id() -> str:
    """Generate session ID"""
    return generate_id("SES")


def generate_correlation_id() -> str:
    """
    Generate a correlation ID for request tracing

    Returns:
        Correlation ID string with timestamp prefix
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    unique_part = uuid.uuid4().hex[:8]
    return f"COR-{timestamp}-{unique_part}"
