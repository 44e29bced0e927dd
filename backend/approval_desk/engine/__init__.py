"""Policy engine - Authorization and visibility rules"""
from .permission_guard import PermissionGuard

__all__ = [
    "PermissionGuard",
]
