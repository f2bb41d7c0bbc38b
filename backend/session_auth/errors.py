"""Exceptions raised by the session authentication core."""


class SessionAuthError(Exception):
    """Base exception for all session auth errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class HashingError(SessionAuthError):
    """Raised when the password hashing primitive cannot run."""


class DatabaseConnectionError(SessionAuthError):
    """Raised when the datastore is misconfigured or unreachable."""


class ClientError(SessionAuthError):
    """A failure caused by the caller's input; its message is safe to return."""


class UserAlreadyExists(ClientError):
    def __init__(self) -> None:
        super().__init__("User already exists")


class UserNotFound(ClientError):
    def __init__(self) -> None:
        super().__init__("User not found")


class InvalidPassword(ClientError):
    def __init__(self) -> None:
        super().__init__("Invalid password")


class InvalidCredentials(ClientError):
    """Raised when a login attempt carries neither an email nor a phone."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials")
