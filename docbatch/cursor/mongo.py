from typing import Any
from typing import Callable
from typing import Iterator
from typing import Optional

from pymongo import ASCENDING
from pymongo import MongoClient
from pymongo.client_session import ClientSession
from pymongo.errors import PyMongoError

from docbatch.cursor import config as cursor_config
from docbatch.cursor.criteria import FilterCriteria
from docbatch.cursor.decoder import Decoder
from docbatch.cursor.decoder import PydanticDecoder
from docbatch.cursor.store import RawCursor
from docbatch.cursor.store import Session
from docbatch.cursor.store import StoreHandle

_NOTHING_BUFFERED = object()


class MongoSession(Session):
    def __init__(self, client_session: ClientSession):
        self._client_session = client_session

    @property
    def client_session(self) -> ClientSession:
        return self._client_session

    @property
    def session_id(self) -> Any:
        return self._client_session.session_id

    @property
    def causally_consistent(self) -> bool:
        return self._client_session.options.causal_consistency

    def end(self):
        self._client_session.end_session()


class MongoRawCursor(RawCursor):
    """
    pymongo cursors can only be advanced, so has_next() pulls the next
    document ahead of time and keeps it until next() is called.

    A pymongo cursor is dead after a network error, and iterating it again
    reports no more documents. The error is raised to the caller and the
    following call reopens the query through 'open_find', resuming after the
    '_id' of the last document received. 'open_find' takes that '_id', or
    None for the first query, and returns documents in ascending '_id' order.
    """

    def __init__(self, open_find: Callable[[Optional[Any]], Iterator[Any]]):
        self._open_find = open_find
        self._cursor = open_find(None)
        self._buffered = _NOTHING_BUFFERED
        self._last_id = None
        self._interrupted = False

    def has_next(self) -> bool:
        if self._buffered is not _NOTHING_BUFFERED:
            return True
        try:
            self._buffered = self._pull()
        except StopIteration:
            return False
        return True

    def next(self) -> Any:
        if self._buffered is not _NOTHING_BUFFERED:
            document, self._buffered = self._buffered, _NOTHING_BUFFERED
            return document
        return self._pull()

    def close(self):
        self._cursor.close()

    def _pull(self) -> Any:
        if self._interrupted:
            self._reopen()
        try:
            document = next(self._cursor)
        except PyMongoError:
            self._interrupted = True
            raise
        if "_id" in document:
            self._last_id = document["_id"]
        return document

    def _reopen(self):
        self._cursor.close()
        self._cursor = self._open_find(self._last_id)
        self._interrupted = False


class MongoStore(StoreHandle):
    """
    StoreHandle reading from a MongoDB database through pymongo.

    Session support is decided by the server's 'hello' reply: deployments
    supporting sessions report 'logicalSessionTimeoutMinutes'.

    Records are read in ascending '_id' order, so that a read interrupted by
    a network error can be resumed without skipping or repeating records.
    """

    def __init__(
        self,
        client: Optional[MongoClient] = None,
        database: Optional[str] = None,
        decoder: Optional[Decoder] = None,
    ):
        self._client = client or MongoClient(cursor_config.mongo.uri)
        self._database = self._client[database or cursor_config.mongo.database]
        self._decoder = decoder or PydanticDecoder()

    @property
    def decoder(self) -> Decoder:
        return self._decoder

    def supports_sessions(self) -> bool:
        hello = self._client.admin.command("hello")
        return hello.get("logicalSessionTimeoutMinutes") is not None

    def start_session(self, causally_consistent: bool) -> MongoSession:
        return MongoSession(
            self._client.start_session(causal_consistency=causally_consistent)
        )

    def refresh_session(self, session: MongoSession):
        self._client.admin.command(
            "refreshSessions",
            [session.session_id],
            session=session.client_session,
        )

    def open_cursor(
        self,
        filter_criteria: FilterCriteria,
        collection: str,
        batch_size: int,
        no_cursor_timeout: bool,
        session: Optional[MongoSession],
    ) -> MongoRawCursor:
        query = filter_criteria.as_query()
        client_session = session.client_session if session is not None else None

        def open_find(resume_after):
            if resume_after is not None:
                resumed_query = {"$and": [query, {"_id": {"$gt": resume_after}}]}
            else:
                resumed_query = query
            return self._database[collection].find(
                resumed_query,
                sort=[("_id", ASCENDING)],
                no_cursor_timeout=no_cursor_timeout,
                batch_size=batch_size,
                session=client_session,
            )

        return MongoRawCursor(open_find)
