"""
Error taxonomy for ghx.

Every failure that crosses a component boundary is one of these types:

    - InvalidRequestError: caller input rejected before any remote call
    - AuthenticationError: credentials missing or rejected (fatal to the invocation)
    - AccessDeniedError: credentials valid but lacking permission for a resource
    - NotFoundError: project, item or workflow does not exist
    - RemoteUnavailableError: transport failure after retries were exhausted
    - RemoteMutationError: the remote system rejected a single mutation

Partial failure of a bulk operation is not an exception: it is reported through
``BulkOperationStatus.PARTIALLY_FAILED`` on the operation record.
"""


class GhxError(Exception):
    """Base class for all ghx errors."""


class InvalidRequestError(GhxError):
    """Raised when a request fails validation before any remote call is made."""


class AuthenticationError(GhxError):
    """Raised when the remote system rejects the supplied credentials."""


class AccessDeniedError(GhxError):
    """Raised when the credentials lack permission for the target resource."""


class NotFoundError(GhxError):
    """Raised when a project, item or workflow cannot be found."""


class RemoteUnavailableError(GhxError):
    """Raised when the remote system stays unreachable after retries."""


class RemoteMutationError(GhxError):
    """
    Raised when the remote system returns errors for a single request.

    Attributes:
        errors: Raw error entries returned by the GraphQL endpoint
    """

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []
