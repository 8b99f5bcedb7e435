"""Authentication service - registration, login, sessions."""

from dataclasses import dataclass
from datetime import timedelta

from email_validator import EmailNotValidError, validate_email
from zxcvbn import zxcvbn

from src.scenevault.core.config import Settings
from src.scenevault.core.errors import AuthError, StorageFailure, ValidationError
from src.scenevault.core.locks import KeyedLock
from src.scenevault.core.logging import get_logger
from src.scenevault.core.security import (
    DUMMY_PASSWORD_HASH,
    generate_session_token,
    hash_password,
    hash_token,
    validate_storage_segment,
    verify_password,
)
from src.scenevault.core.shutdown import MutationTracker
from src.scenevault.core.storage import JSONFileStore
from src.scenevault.models import Session, User, UserRecord, utc_now

logger = get_logger(__name__)

USERS_NAMESPACE = "users"
EMAIL_INDEX_NAMESPACE = "users_by_email"
USERNAME_INDEX_NAMESPACE = "users_by_username"
SESSIONS_NAMESPACE = "sessions"

REGISTRATION_LOCK_KEY = "auth:register"

MIN_USERNAME_LENGTH = 2
MAX_USERNAME_LENGTH = 50
MAX_PASSWORD_LENGTH = 1024

# Same message for unknown email and wrong password, so responses don't reveal accounts
INVALID_CREDENTIALS = "Invalid email or password"


@dataclass(frozen=True)
class LoginResult:
    user: User
    token: str


class AuthService:
    """Registers and authenticates users and manages bearer sessions.

    Users are stored by id, with two index records (email and lower-cased
    username, both keyed by their SHA256) for O(1) lookups and uniqueness.
    Sessions are stored by the SHA256 of their token.
    """

    def __init__(
        self,
        store: JSONFileStore,
        locks: KeyedLock,
        tracker: MutationTracker,
        settings: Settings,
    ):
        self.store = store
        self.locks = locks
        self.tracker = tracker
        self.settings = settings

    async def ensure_namespaces(self) -> None:
        for namespace in (
            USERS_NAMESPACE,
            EMAIL_INDEX_NAMESPACE,
            USERNAME_INDEX_NAMESPACE,
            SESSIONS_NAMESPACE,
        ):
            await self.store.ensure_dir(namespace)

    # --- Registration ---

    async def register(self, username: str, email: str, password: str) -> User:
        """Create a user account.

        Raises ValidationError for malformed input or an email/username that is
        already taken (compared case-insensitively).
        """
        username = self._clean_username(username)
        email = self._clean_email(email)
        self._check_password(password, username, email)

        record = UserRecord(
            username=username,
            email=email,
            hashed_password=hash_password(password),
        )
        await self.tracker.run(self._insert_user(record))

        logger.info("User registered", user_id=record.id)
        return record.to_public()

    async def _insert_user(self, record: UserRecord) -> None:
        email_key = hash_token(record.email)
        username_key = hash_token(record.username.lower())

        # Serialized so two concurrent registrations can't both pass the uniqueness check
        async with self.locks.hold(REGISTRATION_LOCK_KEY):
            if await self.store.get(EMAIL_INDEX_NAMESPACE, email_key) is not None:
                raise ValidationError("Email already registered")
            if await self.store.get(USERNAME_INDEX_NAMESPACE, username_key) is not None:
                raise ValidationError("Username already taken")

            written: list[tuple[str, str]] = []
            try:
                await self.store.put(USERS_NAMESPACE, record.id, record.model_dump(mode="json"))
                written.append((USERS_NAMESPACE, record.id))
                await self.store.put(USERNAME_INDEX_NAMESPACE, username_key, {"user_id": record.id})
                written.append((USERNAME_INDEX_NAMESPACE, username_key))
                await self.store.put(EMAIL_INDEX_NAMESPACE, email_key, {"user_id": record.id})
            except StorageFailure:
                await self._rollback(written)
                raise

    async def _rollback(self, written: list[tuple[str, str]]) -> None:
        for namespace, key in reversed(written):
            try:
                await self.store.delete(namespace, key)
            except StorageFailure:
                logger.error(
                    "Failed to roll back partial registration",
                    namespace=namespace,
                    key=key,
                )

    def _clean_username(self, username: str | None) -> str:
        username = (username or "").strip()
        if len(username) < MIN_USERNAME_LENGTH:
            raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters")
        if len(username) > MAX_USERNAME_LENGTH:
            raise ValidationError(f"Username must be at most {MAX_USERNAME_LENGTH} characters")
        return username

    def _clean_email(self, email: str | None) -> str:
        email = (email or "").strip()
        try:
            result = validate_email(email, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValidationError("Invalid email address") from e
        return result.normalized.lower()

    def _check_password(self, password: str | None, username: str, email: str) -> None:
        min_length = self.settings.password_min_length
        if not password or len(password) < min_length:
            raise ValidationError(f"Password must be at least {min_length} characters")
        if len(password) > MAX_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_LENGTH} characters")

        if self.settings.password_min_score > 0:
            result = zxcvbn(password, user_inputs=[username, email])
            if result["score"] < self.settings.password_min_score:
                warning = result.get("feedback", {}).get("warning", "")
                if warning:
                    raise ValidationError(f"Weak password: {warning}")
                raise ValidationError(
                    "Password is too weak. Use a longer password with a mix of characters."
                )

    # --- Login / logout ---

    async def login(self, email: str, password: str) -> LoginResult:
        """Verify credentials and open a new session.

        Raises AuthError with the same message whatever the cause.
        """
        email = (email or "").strip().lower()
        record = await self._get_record_by_email(email) if email else None

        # Always verify a hash so unknown emails take as long as wrong passwords
        password_hash = record.hashed_password if record else DUMMY_PASSWORD_HASH
        password_valid = verify_password(password or "", password_hash)

        if record is None or not password_valid:
            logger.info("Login failed")
            raise AuthError(INVALID_CREDENTIALS)

        now = utc_now()
        session = Session(
            token=generate_session_token(),
            user_id=record.id,
            created_at=now,
            expires_at=now + timedelta(seconds=self.settings.session_ttl_seconds),
        )
        await self.tracker.run(
            self.store.put(
                SESSIONS_NAMESPACE, hash_token(session.token), session.model_dump(mode="json")
            )
        )

        logger.info("User logged in", user_id=record.id)
        return LoginResult(user=record.to_public(), token=session.token)

    async def logout(self, token: str | None) -> None:
        """Destroy a session. Unknown or empty tokens are a no-op."""
        if not token:
            return
        await self.tracker.run(self.store.delete(SESSIONS_NAMESPACE, hash_token(token)))

    # --- Lookups ---

    async def get_session(self, token: str | None) -> Session | None:
        """Return the live session for ``token``, or None."""
        if not token or not isinstance(token, str):
            return None
        data = await self.store.get(SESSIONS_NAMESPACE, hash_token(token))
        if data is None:
            return None
        session = Session(token=token, **data)
        if session.is_expired():
            return None
        return session

    async def get_user_by_id(self, user_id: str | None) -> User | None:
        record = await self._get_record(user_id)
        return record.to_public() if record else None

    async def _get_record(self, user_id: str | None) -> UserRecord | None:
        try:
            validate_storage_segment(user_id)  # type: ignore[arg-type]
        except ValueError:
            return None
        data = await self.store.get(USERS_NAMESPACE, user_id)  # type: ignore[arg-type]
        return UserRecord.model_validate(data) if data else None

    async def _get_record_by_email(self, email: str) -> UserRecord | None:
        index = await self.store.get(EMAIL_INDEX_NAMESPACE, hash_token(email))
        if index is None:
            return None
        return await self._get_record(index.get("user_id"))

    # --- Maintenance ---

    async def purge_expired_sessions(self) -> int:
        """Delete expired session records. Returns how many were removed."""
        now = utc_now()
        removed = 0
        async with self.tracker.track():
            for key in await self.store.list_keys(SESSIONS_NAMESPACE):
                data = await self.store.get(SESSIONS_NAMESPACE, key)
                if data is None:
                    continue
                if Session(token="", **data).is_expired(now):
                    if await self.store.delete(SESSIONS_NAMESPACE, key):
                        removed += 1
        if removed:
            logger.info("Purged expired sessions", count=removed)
        return removed
