"""Utility modules"""
from .logger import get_logger, setup_logging
from .jwt import JWTValidator, get_jwt_validator
from .idgen import generate_id, generate_record_id, generate_correlation_id
from .passwords import hash_password, verify_password
from .time import utc_now, format_iso, parse_iso

__all__ = [
    "get_logger",
    "setup_logging",
    "JWTValidator",
    "get_jwt_validator",
    "generate_id",
    "generate_record_id",
    "generate_correlation_id",
    "hash_password",
    "verify_password",
    "utc_now",
    "format_iso",
    "parse_iso",
]
