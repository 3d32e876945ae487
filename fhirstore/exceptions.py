"""fhirstore exception hierarchy.

All custom exceptions inherit from FhirStoreError, allowing callers
to catch broad or specific error categories as needed.
"""


class FhirStoreError(Exception):
    """Base exception for all fhirstore errors."""


class ResourceKeyError(FhirStoreError):
    """Base for errors tied to a single (resource_type, resource_id) key."""

    def __init__(self, message: str, resource_type: str, resource_id: str) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class ResourceAlreadyExistsError(ResourceKeyError):
    """Raised when an insert targets a key that is already stored.

    Recoverable: the caller may switch to update.
    """

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"Resource already exists: {resource_type}/{resource_id}",
            resource_type,
            resource_id,
        )


class ResourceNotFoundError(ResourceKeyError):
    """Raised when select, update or delete targets an absent key."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"Resource not found: {resource_type}/{resource_id}",
            resource_type,
            resource_id,
        )


class InvalidArgumentError(FhirStoreError, ValueError):
    """Raised when the caller supplies input the store cannot act on.

    Examples: unknown resource type, empty resource id, a database path
    that cannot be shared between connections.
    """


class CodecError(FhirStoreError):
    """Raised when a resource cannot be encoded or a stored body decoded.

    Examples: malformed JSON, body failing model validation, body whose
    resourceType disagrees with the requested type.
    """

    def __init__(self, message: str, resource_type: str | None = None) -> None:
        self.resource_type = resource_type
        super().__init__(message)


class StorageFaultError(FhirStoreError):
    """Raised when the storage engine fails or its invariants are broken.

    Examples: I/O errors, lock timeouts, more than one row found for a
    key covered by the unique index. Never retried by the store.
    """


class UnsupportedOperationError(FhirStoreError, NotImplementedError):
    """Raised for operations the store does not implement.

    Currently: opening a database stamped with a different schema version.
    """
