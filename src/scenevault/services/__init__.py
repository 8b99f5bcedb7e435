from src.scenevault.services.auth_service import INVALID_CREDENTIALS, AuthService, LoginResult
from src.scenevault.services.project_service import ProjectService

__all__ = [
    "INVALID_CREDENTIALS",
    "AuthService",
    "LoginResult",
    "ProjectService",
]
