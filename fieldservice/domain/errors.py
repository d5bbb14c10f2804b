"""
Domain errors. The api layer maps them to HTTP status codes.
"""


class AuthenticationError(Exception):
    """Missing or invalid bearer token."""


class BusinessNotFoundError(Exception):
    """The authenticated user has no business associated."""


class InvalidRequestError(ValueError):
    pass


class JobNotFoundError(LookupError):
    pass


class StoreError(Exception):
    """A read or write against the data store failed."""
