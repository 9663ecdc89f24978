"""Exceptions raised by ports and adapters."""


class StoreError(Exception):
    """The backing store rejected or failed a request."""


class AuthError(Exception):
    """The auth collaborator rejected a credential or request."""


class RecordValidationError(ValueError):
    """A row coming from the store does not satisfy its record's constraints."""

    def __init__(self, table: str, detail: str) -> None:
        super().__init__(f"Invalid {table} row: {detail}")
        self.table = table


class LLMConfigurationError(RuntimeError):
    """The AI completion adapter is missing required configuration."""


class LLMGatewayError(RuntimeError):
    """The AI completion gateway answered with a failure."""


class BookSearchError(RuntimeError):
    """The book-metadata search API failed."""
