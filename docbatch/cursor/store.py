from abc import ABC
from abc import abstractmethod
from typing import Any
from typing import Optional

from docbatch.cursor.criteria import FilterCriteria
from docbatch.cursor.decoder import Decoder
from docbatch.utils import default_collection_name


class Session(ABC):
    """
    Store issued token scoping reads so that they observe every write made
    earlier through the same client.
    """

    @property
    @abstractmethod
    def session_id(self) -> Any:
        pass

    @property
    @abstractmethod
    def causally_consistent(self) -> bool:
        pass

    @abstractmethod
    def end(self):
        pass


class RawCursor(ABC):
    """Store native iteration handle over the documents matching a filter."""

    @abstractmethod
    def has_next(self) -> bool:
        pass

    @abstractmethod
    def next(self) -> Any:
        """Returns the next raw record, fails if there is none available."""

    @abstractmethod
    def close(self):
        pass


class StoreHandle(ABC):
    """
    The capabilities a document store must offer to be read through a Cursor.

    supports_sessions() is the capability query deciding whether a session
    is requested at all. A store may still refuse a session by raising
    SessionUnsupported from start_session(). Any other exception raised from
    start_session() is treated as fatal.
    """

    @property
    @abstractmethod
    def decoder(self) -> Decoder:
        pass

    @abstractmethod
    def supports_sessions(self) -> bool:
        pass

    @abstractmethod
    def start_session(self, causally_consistent: bool) -> Session:
        pass

    @abstractmethod
    def refresh_session(self, session: Session):
        """Keeps the session alive on the store side."""

    @abstractmethod
    def open_cursor(
        self,
        filter_criteria: FilterCriteria,
        collection: str,
        batch_size: int,
        no_cursor_timeout: bool,
        session: Optional[Session],
    ) -> RawCursor:
        pass

    def collection_name_for(self, record_type: type) -> str:
        return default_collection_name(record_type)
