"""Domain error taxonomy.

"Not found" is not an error here: lookups return None and the access layer
turns that into a 404.
"""


class SceneVaultError(Exception):
    """Base class for errors raised by the stores and services."""


class ValidationError(SceneVaultError, ValueError):
    """Malformed or duplicate input. Safe to show to the caller."""


class AuthError(SceneVaultError):
    """Bad credentials or invalid session."""


class StorageFailure(SceneVaultError):
    """Durable storage could not complete an operation.

    The message is opaque; the underlying OSError is chained for logs only.
    """
