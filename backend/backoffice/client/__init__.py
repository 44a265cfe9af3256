from .api import AuthApiClient, AuthApiError, AuthResponse
from .session import AdminSessionManager, LoginResult, SessionState
from .storage import SESSION_EXPIRY_KEY, SESSION_KEY, TokenStorage

__all__ = [
    'AuthApiClient', 'AuthApiError', 'AuthResponse',
    'AdminSessionManager', 'LoginResult', 'SessionState',
    'SESSION_KEY', 'SESSION_EXPIRY_KEY', 'TokenStorage',
]
