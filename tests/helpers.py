"""Test helper constants and functions for common data creation patterns."""

from src.scenevault.services import AuthService, LoginResult

TEST_BACKUP_RETENTION = 5
DEFAULT_TEST_PASSWORD = "testpassword123"


async def register_and_login(
    auth: AuthService,
    username: str = "alice",
    email: str | None = None,
    password: str = DEFAULT_TEST_PASSWORD,
) -> LoginResult:
    """Create a user and open a session for it."""
    email = email or f"{username}@example.com"
    await auth.register(username, email, password)
    return await auth.login(email, password)
