from typing import Any
from typing import Optional

"""
Every exception raised by the cursor lives in this module.

The existence probe is the only operation that is retried. All the other
exceptions reach the caller on their first occurrence, except
SessionUnsupported which is consumed by the session negotiation and turns the
cursor into sessionless mode.
"""


class SessionUnsupported(Exception):
    """
    Exception raised by a store when it cannot provide sessions.

    Attributes:
        store -- description of the store that refused the session
        message -- explanation of the error
    """

    def __init__(self, store: str):
        self.store = store
        self.message = f"Sessions are not supported by the store: '{store}'."
        super().__init__(self.message)


class SessionNegotiationFailure(Exception):
    def __init__(self, message):
        super().__init__(message)
        self.message = message


class TransientProbeError(Exception):
    """
    Exception raised when checking for more records against the store failed.

    Attributes:
        collection -- the collection the cursor reads from
        cause -- the exception raised by the store
        message -- explanation of the error
    """

    def __init__(self, collection: str, cause: BaseException):
        self.collection = collection
        self.cause = cause
        self.message = (
            f"Checking for more records in '{collection}' failed. "
            f"Exception type: '{type(cause).__name__}' and exception message: '{cause}'"
        )
        super().__init__(self.message)


class DecodeError(Exception):
    """
    Exception raised when a raw record cannot be mapped to the record type.

    Attributes:
        record_type -- the type the record was decoded into
        raw_record -- the record as returned by the store
        cause -- the exception raised while decoding, if any
        message -- explanation of the error
    """

    def __init__(
        self,
        record_type: type,
        raw_record: Any,
        cause: Optional[BaseException] = None,
    ):
        self.record_type = record_type
        self.raw_record = raw_record
        self.cause = cause
        self.message = (
            f"Record could not be decoded into '{getattr(record_type, '__name__', record_type)}': {cause}"
        )
        super().__init__(self.message)


class CallerMisuseError(Exception):
    def __init__(self, message):
        super().__init__(message)
        self.message = message


class CursorClosedError(CallerMisuseError):
    """
    Exception raised when an iterator is requested from a cursor whose
    resources were released before an iterator was created, either by an
    explicit close() or by a failed initialisation.

    Attributes:
        collection -- the collection the cursor reads from
        message -- explanation of the error
    """

    def __init__(self, collection: str):
        self.collection = collection
        super().__init__(
            f"The cursor over collection '{collection}' was released before iteration."
        )


class IterationAbortedError(CallerMisuseError):
    """
    Exception raised when an iterator is used again after an error ended its
    iteration. The records following the failure were never read, so the
    iterator cannot report a complete stream.

    Attributes:
        collection -- the collection the cursor reads from
        cause -- the exception that ended the iteration
        message -- explanation of the error
    """

    def __init__(self, collection: str, cause: BaseException):
        self.collection = collection
        self.cause = cause
        super().__init__(
            f"The iteration over collection '{collection}' was aborted by an earlier "
            f"'{type(cause).__name__}': {cause}"
        )


class LoggerNotInitialised(Exception):
    """Exception raised when a logger is requested outside of a cursor.

    Attributes:
        message -- explanation of the error
    """

    def __init__(self):
        self.message = "No cursor logger has been initialised in this context."
        super().__init__(self.message)
