from .storage import KvBlob, WriteLock
from .auth import AdminSession, LoginAttempt, AuditLog

__all__ = [
    'KvBlob', 'WriteLock',
    'AdminSession', 'LoginAttempt', 'AuditLog',
]
