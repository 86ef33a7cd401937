# pos_sync/modules/pos/exceptions.py

"""
Custom exceptions for the POS sync module.

Adapter errors are split into transient failures (network, timeouts, 5xx),
which the caller may retry by re-running the whole invocation, and semantic
failures (the POS rejected the payload), which are not retryable.
"""

from typing import Any, Optional

from pos_sync.core.exceptions import ServiceError


class POSSyncException(ServiceError):
    """Base exception for POS sync module"""
    def __init__(
        self,
        message: str,
        code: str = "POS_SYNC_ERROR",
        status_code: int = 500,
    ):
        super().__init__(message, code=code, status_code=status_code)


class POSAdapterError(POSSyncException):
    """Failure talking to the remote POS"""
    retryable = False

    def __init__(
        self,
        message: str,
        code: str = "POS_ADAPTER_ERROR",
        status_code: int = 502,
        endpoint: Optional[str] = None,
        remote_status: Optional[int] = None,
    ):
        super().__init__(message, code=code, status_code=status_code)
        self.endpoint = endpoint
        self.remote_status = remote_status


class POSTransientError(POSAdapterError):
    """Network error, timeout or 5xx; safe to retry the whole invocation"""
    retryable = True

    def __init__(self, message: str, endpoint: Optional[str] = None,
                 remote_status: Optional[int] = None):
        super().__init__(
            message,
            code="POS_UNAVAILABLE",
            status_code=503,
            endpoint=endpoint,
            remote_status=remote_status,
        )


class POSSemanticError(POSAdapterError):
    """The POS rejected the request (validation or application error code)"""

    def __init__(self, message: str, endpoint: Optional[str] = None,
                 remote_status: Optional[int] = None,
                 error_code: Optional[Any] = None):
        super().__init__(
            message,
            code="POS_REJECTED",
            status_code=502,
            endpoint=endpoint,
            remote_status=remote_status,
        )
        self.error_code = error_code


class PreconditionNotMetError(POSSyncException):
    """A dependency is not synced yet; the entity is skipped for this run"""
    def __init__(self, message: str):
        super().__init__(message, code="PRECONDITION_NOT_MET", status_code=409)


class EntityNotFoundError(POSSyncException):
    """Resource not found error"""
    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            message=f"{resource} with identifier {identifier} not found",
            code="NOT_FOUND",
            status_code=404,
        )
        self.resource = resource
        self.identifier = identifier


class POSIntegrationNotFoundError(EntityNotFoundError):
    """No active POS connection configured for a shop"""
    def __init__(self, shop_id: Any):
        super().__init__("Active POS integration for shop", shop_id)
