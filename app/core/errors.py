"""
Error types shared across features.

Handlers translate these into HTTP responses:
- ValidationError -> 400
- StoreError -> 500 (cause logged, never returned to the client)
"""


class FeatureAccessError(Exception):
    """Base exception for the service."""
    http_status: int = 500


class ValidationError(FeatureAccessError):
    """Malformed or missing request input."""
    http_status = 400

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class StoreError(FeatureAccessError):
    """Underlying store failure: connectivity, query execution or timeout."""
    http_status = 500

    def __init__(self, message: str, operation: str):
        super().__init__(f"{operation}: {message}")
        self.message = message
        self.operation = operation
