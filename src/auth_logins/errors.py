"""Errors raised by the auth login store."""


class AuthLoginStoreError(Exception):
    """Base auth login store exception."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class DuplicateKeyError(AuthLoginStoreError):
    """A record with the same user_id already exists."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"Auth login already exists for user_id {user_id!r}")


class RecordNotFoundError(AuthLoginStoreError):
    """No record matches the given user_id."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"No auth login for user_id {user_id!r}")


class ConstraintViolationError(AuthLoginStoreError):
    """A value breaks a column constraint (NOT NULL, type, immutability)."""

    def __init__(self, column: str, reason: str):
        self.column = column
        self.reason = reason
        super().__init__(f"{column}: {reason}")
