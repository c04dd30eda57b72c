"""Exceptions raised by the library core.

Validation problems derive from ``ValueError`` and lookups that come back
empty derive from ``LookupError`` so callers can catch either the broad
builtin or the precise type.
"""


class LibraryError(Exception):
    """Base class for every error raised by cybooks."""
    pass


class InvalidEmailFormat(LibraryError, ValueError):
    pass


class EmailAlreadyExists(LibraryError, ValueError):
    pass


class UserNotFound(LibraryError, LookupError):
    pass


class UserHasLoans(LibraryError):
    """Raised when deleting a user who still holds unreturned copies."""
    pass


class NoCopyAvailable(LibraryError):
    pass


class BookNotFound(LibraryError, LookupError):
    pass


class LoanNotFound(LibraryError, LookupError):
    pass


class InvalidSearchType(LibraryError, ValueError):
    pass


class InvalidSearchTerm(LibraryError, ValueError):
    pass


class InvalidArgument(LibraryError, ValueError):
    pass


class CatalogError(LibraryError):
    """Errors coming from the remote union catalog."""
    pass


class TransportFailure(CatalogError):
    pass


class MalformedInput(CatalogError):
    """Raised when a catalog response is not well-formed XML."""
    pass
