"""
Ciclus RD - Error types

Validation problems never reach the backend; write failures are surfaced to the
caller with the draft kept; privileged failures are reported separately from
generic ones.
"""


class ValidationError(ValueError):
    """Local validation failure with a user-facing message"""


class TransitionError(ValidationError):
    """Illegal report status transition"""


class BackendWriteError(RuntimeError):
    """Create/update/delete failed at the backend (network, constraint, storage)"""


class PrivilegedOperationError(PermissionError):
    """Elevated backend operation not permitted or not configured"""


class LocationUnavailableError(RuntimeError):
    """Device position could not be read (service off, permission denied, no fix)"""
