"""
Error taxonomy for the portal core

Routes translate these into HTTP responses (see server.py); the core
itself never raises HTTPException.
"""


class PortalError(Exception):
    """Base class for failures scoped to a single operation"""


class AuthError(PortalError):
    """Invalid credentials or unknown role. Message never says which."""

    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(message)


class DuplicateUsernameError(PortalError):
    def __init__(self, role: str, username: str):
        self.role = role
        self.username = username
        super().__init__(f"Username already taken: {username}")


class NotFoundError(PortalError):
    """Id lookup miss on a principal or record; the caller may retry"""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found")


class FieldAccessError(PortalError):
    """A role tried to write fields the policy table does not allow"""

    def __init__(self, role: str, fields):
        self.role = role
        self.fields = sorted(fields)
        super().__init__(f"Role '{role}' may not write: {', '.join(self.fields)}")


class StorageError(PortalError):
    """The underlying store failed; nothing was written for this operation"""

    def __init__(self, operation: str, cause: Exception = None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Storage operation failed: {operation}")


class InvalidStatusError(PortalError, ValueError):
    """A status outside the known set reached the workflow"""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Unknown request status: {value!r}")
