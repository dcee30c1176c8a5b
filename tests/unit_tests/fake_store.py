from collections import deque
from typing import Any
from typing import List
from typing import Optional

from pydantic import BaseModel

from docbatch.cursor.criteria import FilterCriteria
from docbatch.cursor.decoder import Decoder
from docbatch.cursor.decoder import PydanticDecoder
from docbatch.cursor.store import RawCursor
from docbatch.cursor.store import Session
from docbatch.cursor.store import StoreHandle
from docbatch.exceptions import SessionUnsupported


class Variant(BaseModel):
    accession: int


def variant_documents(count: int) -> List[dict]:
    return [{"_id": i, "accession": i} for i in range(count)]


class FakeSession(Session):
    def __init__(self, session_id: str, causally_consistent: bool):
        self._session_id = session_id
        self._causally_consistent = causally_consistent
        self.ended = False

    @property
    def session_id(self) -> Any:
        return self._session_id

    @property
    def causally_consistent(self) -> bool:
        return self._causally_consistent

    def end(self):
        self.ended = True


class FakeRawCursor(RawCursor):
    """
    Serves 'documents' in order. Every has_next() call first raises the
    next exception of 'probe_failures', if any are left.
    """

    def __init__(self, documents: List[Any], probe_failures: List[Exception]):
        self._documents = deque(documents)
        self._probe_failures = list(probe_failures)
        self.has_next_calls = 0
        self.next_calls = 0
        self.closed = False

    def has_next(self) -> bool:
        self.has_next_calls += 1
        if self._probe_failures:
            raise self._probe_failures.pop(0)
        return bool(self._documents)

    def next(self) -> Any:
        self.next_calls += 1
        if not self._documents:
            raise StopIteration
        return self._documents.popleft()

    def close(self):
        self.closed = True


class FakeStore(StoreHandle):
    def __init__(
        self,
        documents: List[Any],
        session_support: bool = True,
        refuse_session: bool = False,
        session_error: Optional[Exception] = None,
        open_cursor_error: Optional[Exception] = None,
        probe_failures: Optional[List[Exception]] = None,
        decoder: Optional[Decoder] = None,
    ):
        self._documents = documents
        self._session_support = session_support
        self._refuse_session = refuse_session
        self._session_error = session_error
        self._open_cursor_error = open_cursor_error
        self._probe_failures = probe_failures or []
        self._decoder = decoder or PydanticDecoder()

        self.supports_sessions_calls = 0
        self.start_session_calls = 0
        self.open_cursor_calls = 0
        self.refresh_session_calls = 0
        self.sessions: List[FakeSession] = []
        self.raw_cursors: List[FakeRawCursor] = []
        self.open_cursor_kwargs: List[dict] = []

    @property
    def decoder(self) -> Decoder:
        return self._decoder

    def supports_sessions(self) -> bool:
        self.supports_sessions_calls += 1
        return self._session_support

    def start_session(self, causally_consistent: bool) -> FakeSession:
        self.start_session_calls += 1
        if self._refuse_session:
            raise SessionUnsupported("fake standalone store")
        if self._session_error:
            raise self._session_error
        session = FakeSession(f"session-{len(self.sessions)}", causally_consistent)
        self.sessions.append(session)
        return session

    def refresh_session(self, session: FakeSession):
        self.refresh_session_calls += 1

    def open_cursor(
        self,
        filter_criteria: FilterCriteria,
        collection: str,
        batch_size: int,
        no_cursor_timeout: bool,
        session: Optional[FakeSession],
    ) -> FakeRawCursor:
        self.open_cursor_calls += 1
        self.open_cursor_kwargs.append(
            {
                "filter_criteria": filter_criteria,
                "collection": collection,
                "batch_size": batch_size,
                "no_cursor_timeout": no_cursor_timeout,
                "session": session,
            }
        )
        if self._open_cursor_error:
            raise self._open_cursor_error
        raw_cursor = FakeRawCursor(self._documents, self._probe_failures)
        self.raw_cursors.append(raw_cursor)
        return raw_cursor
