"""Custom exception classes for the CDN file store."""


class CDNException(Exception):
    """
    Base exception class for all file store errors.
    """
    code = "INTERNAL_ERROR"


class UnauthorizedError(CDNException):
    """
    Raised when the caller lacks a role permitted for the requested action.
    """
    code = "UNAUTHORIZED"


class ValidationError(CDNException):
    """
    Raised on malformed filenames, sizes, roles, chunk parameters or config values.
    """
    code = "VALIDATION_ERROR"


class UploadsDisabledError(ValidationError):
    """
    Raised when an upload is attempted while uploads are disabled in config.
    """
    code = "UPLOADS_DISABLED"


class DuplicateFileError(CDNException):
    """
    Raised when a metadata row with the same file id already exists.
    """
    code = "DUPLICATE_FILE"


class NotFoundError(CDNException):
    """
    Raised when a file id or content digest does not exist.
    """
    code = "NOT_FOUND"


class LastAdminViolationError(CDNException):
    """
    Raised when a revoke would leave no identity holding the Admin role.
    """
    code = "LAST_ADMIN_VIOLATION"


class RoleAlreadyAssignedError(CDNException):
    """
    Raised when granting a role the identity already holds.
    """
    code = "ROLE_ALREADY_ASSIGNED"


class RoleNotPresentError(CDNException):
    """
    Raised when revoking a role the identity does not hold.
    """
    code = "ROLE_NOT_PRESENT"


class AlreadyInitializedError(CDNException):
    """
    Raised when bootstrapping the first Admin after an Admin already exists.
    """
    code = "ALREADY_INITIALIZED"


class StorageUnavailableError(CDNException):
    """
    Raised when the state file cannot be read or written.
    """
    code = "STORAGE_UNAVAILABLE"


class InternalFailureError(CDNException):
    """
    Raised when an internal invariant breaks (e.g. chunk round-trip mismatch).
    """
    code = "INTERNAL_FAILURE"
