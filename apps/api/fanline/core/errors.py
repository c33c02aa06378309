from contextlib import contextmanager

import requests
from fastapi import HTTPException
from sqlalchemy.exc import DataError, SQLAlchemyError


class ValidationError(ValueError):
    """Bad input, rejected before any write."""


class NotFoundError(LookupError):
    pass


class PermissionDeniedError(Exception):
    pass


class IllegalStateError(RuntimeError):
    """The row exists but is not in a state that allows the operation."""


class RemoteOperationError(RuntimeError):
    """A call to the database or storage collaborator failed."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation


@contextmanager
def remote_operation(operation: str):
    try:
        yield
    except DataError as e:
        # the database rejected a value (bad uuid, numeric overflow)
        orig = getattr(e, "orig", None)
        raise ValidationError(f"{operation}: invalid input: {str(orig or e).strip()}") from e
    except SQLAlchemyError as e:
        orig = getattr(e, "orig", None)
        raise RemoteOperationError(operation, str(orig or e).strip()) from e
    except requests.RequestException as e:
        raise RemoteOperationError(operation, str(e)) from e


_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (PermissionDeniedError, 403),
    (NotFoundError, 404),
    (IllegalStateError, 409),
    (RemoteOperationError, 502),
)


def raise_http(e: Exception):
    """
    Translate a service exception into an HTTPException.
    Explicit HTTP errors pass through unchanged.
    """
    if isinstance(e, HTTPException):
        raise e
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(e, error_type):
            raise HTTPException(status_code=status_code, detail=str(e)) from e
    raise HTTPException(status_code=500, detail=f"{type(e).__name__}: {str(e)}") from e
