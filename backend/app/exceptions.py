"""
Superhero Registry Backend — Custom Exception Hierarchy
========================================================

What:  Application-specific exceptions for each error scenario the API reports.
How:   Every exception knows its HTTP status and machine-readable error code.
       The global handler in main.py reads those two class attributes plus
       `message` and `context` to build the JSON error body.
Who:   Raised by SuperheroService, the route layer and the rate limiter.

Exception Hierarchy:
    SuperheroRegistryError (base)    500  server_error
    ├── ValidationError              400  validation_error
    ├── NotFoundError                404  not_found
    ├── ConflictError                409  conflict
    ├── DatabaseError                500  server_error
    └── RateLimitExceededError       429  rate_limit_exceeded

Client errors (4xx) return their context as `details`. Server errors never
do; their context is only logged.
"""

from typing import Any, Dict, Optional


class SuperheroRegistryError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  Safe to show to API clients
        context:  Structured extras (field names, ids, wrapped error type)
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})

    @property
    def is_client_error(self) -> bool:
        return self.status_code < 500

    def public_details(self) -> Optional[Dict[str, Any]]:
        """Context to include in the response body, if any."""
        if self.is_client_error and self.context:
            return self.context
        return None


class ValidationError(SuperheroRegistryError):
    """
    Client input broke a rule that the request schemas do not express.

    Currently: a missing, malformed or comma-containing image URL on the
    image endpoints. Schema-level problems (types, required fields) stay
    FastAPI's 422.
    """

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.field = field
        if field:
            self.context["field"] = field


class NotFoundError(SuperheroRegistryError):
    """No record with the given id. Raised by lookups and by deletes that matched nothing."""

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        else:
            message = f"{resource} not found"
        super().__init__(message, context)
        self.resource = resource
        self.resource_id = resource_id

    def public_details(self) -> Optional[Dict[str, Any]]:
        # The message already names the id
        return None


class ConflictError(SuperheroRegistryError):
    """
    A write would give two superheroes the same nickname.

    Raised on create and on rename, whether detected by the service's own
    lookup or by the unique constraint at flush time.
    """

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "The resource conflicts with an existing record",
        field: Optional[str] = None,
        value: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.field = field
        self.value = value
        if field:
            self.context["field"] = field
        if value is not None:
            self.context["value"] = value


class DatabaseError(SuperheroRegistryError):
    """
    Unexpected persistence failure while creating a superhero.

    The underlying exception is chained as __cause__ (raise ... from e).
    Other operations do not wrap; their SQLAlchemy errors reach the
    catch-all handler as they are.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)


class RateLimitExceededError(SuperheroRegistryError):
    """A client IP used up its request budget for the current window."""

    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(self, retry_after: int = 60):
        super().__init__(
            f"Too many requests. Please wait {retry_after} seconds before retrying.",
            {"retry_after": retry_after},
        )
        self.retry_after = retry_after
