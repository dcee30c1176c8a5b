import uuid
from enum import Enum
from enum import unique
from threading import RLock
from typing import Any
from typing import Dict
from typing import Mapping
from typing import Optional
from typing import Type
from typing import Union

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from docbatch.cursor import config as cursor_config
from docbatch.cursor.batch_iterator import BatchIterator
from docbatch.cursor.criteria import FilterCriteria
from docbatch.cursor.logger import init_logger
from docbatch.cursor.logger import log_method_call
from docbatch.cursor.logger import with_cursor_logger
from docbatch.cursor.session import SessionKeepAlive
from docbatch.cursor.session import SessionNegotiator
from docbatch.cursor.store import StoreHandle
from docbatch.exceptions import CursorClosedError


@unique
class CursorState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    EXHAUSTED = "exhausted"


_ALLOWED_TRANSITIONS: Dict[CursorState, set] = {
    CursorState.UNINITIALIZED: {CursorState.READY, CursorState.EXHAUSTED},
    CursorState.READY: {CursorState.EXHAUSTED},
    CursorState.EXHAUSTED: set(),
}


class CollectionIdentity(BaseModel):
    name: str = Field(min_length=1)
    record_type: Type[Any]

    model_config = ConfigDict(frozen=True)


class CursorConfig(BaseModel):
    filter_criteria: FilterCriteria
    collection: CollectionIdentity
    batch_size: int = Field(ge=1)
    refresh_interval: Optional[float] = Field(default=None, ge=0)
    no_cursor_timeout: bool = True

    model_config = ConfigDict(frozen=True)


class Cursor:
    """
    A batching, retryable cursor over a document store collection, returning
    batches of decoded records instead of single records.

    The first call to iterator() negotiates a causally consistent session with
    the store, falling back to sessionless reads when the store has no session
    support, opens the raw store cursor, with no server side timeout, inside
    that session and wraps it in a BatchIterator. Every following call returns
    that same iterator.

    The session and the raw cursor are released when the iteration is
    exhausted, when it fails with an error or when close() is called.

    Parameters
    ----------
    filter_criteria : FilterCriteria or Mapping
        Criteria selecting the records of the collection (ex. {"rs": {"$exists": False}}).
    store : StoreHandle
        The store to read from.
    record_type : type
        Type every record is decoded into (ex. SubmittedVariantEntity).
    batch_size : int, optional
        Number of records in each batch, defaults to 'cursor.batch_size' from
        the configuration (1000).
    collection_name : str, optional
        Collection to read from. Supply this only when the collection is not
        the one bound to 'record_type' (ex. 'submittedVariantEntity_custom'
        to read SubmittedVariantEntity records from a custom collection).

    Examples
    --------
    >>> with Cursor({"rs": {"$exists": False}}, store, SubmittedVariantEntity) as cursor:
    ...     for batch in cursor:
    ...         process(batch)
    """

    def __init__(
        self,
        filter_criteria: Union[FilterCriteria, Mapping[str, Any]],
        store: StoreHandle,
        record_type: type,
        batch_size: Optional[int] = None,
        collection_name: Optional[str] = None,
    ):
        if not isinstance(filter_criteria, FilterCriteria):
            filter_criteria = FilterCriteria(predicate=filter_criteria)
        if collection_name is None:
            collection_name = store.collection_name_for(record_type)

        self._config = CursorConfig(
            filter_criteria=filter_criteria,
            collection=CollectionIdentity(name=collection_name, record_type=record_type),
            batch_size=(
                batch_size if batch_size is not None else cursor_config.cursor.batch_size
            ),
            refresh_interval=cursor_config.session.refresh_interval or None,
            no_cursor_timeout=cursor_config.cursor.no_cursor_timeout,
        )
        self._store = store
        self._cursor_id = str(uuid.uuid4())
        self._logger = init_logger(self._cursor_id, collection_name)

        self._lock = RLock()
        self._state = CursorState.UNINITIALIZED
        self._negotiator = SessionNegotiator(store, self._logger)
        self._session = None
        self._raw_cursor = None
        self._iterator: Optional[BatchIterator] = None

    @property
    def cursor_id(self) -> str:
        return self._cursor_id

    @property
    def config(self) -> CursorConfig:
        return self._config

    @property
    def collection_name(self) -> str:
        return self._config.collection.name

    @property
    def batch_size(self) -> int:
        return self._config.batch_size

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def has_session_support(self) -> Optional[bool]:
        """None until the session has been negotiated."""
        return self._negotiator.has_session_support

    def iterator(self) -> BatchIterator:
        with self._lock:
            if self._state is CursorState.UNINITIALIZED:
                self._transition(CursorState.READY)
            if self._iterator is None:
                raise CursorClosedError(self.collection_name)
            return self._iterator

    def set_refresh_interval(self, refresh_interval: Optional[float]):
        """
        Refresh the session every 'refresh_interval' seconds while iterating,
        so that the store does not expire it when the batches are consumed
        slowly. None or 0 disables the refresh.
        """
        with self._lock:
            self._config = CursorConfig.model_validate(
                {**dict(self._config), "refresh_interval": refresh_interval or None}
            )
            if self._iterator is not None:
                self._iterator.set_refresh_interval(self._config.refresh_interval)

    def close(self):
        self._transition(CursorState.EXHAUSTED)

    def __iter__(self) -> BatchIterator:
        return self.iterator()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _transition(self, target: CursorState):
        with self._lock:
            current = self._state
            if current is target:
                return
            if target not in _ALLOWED_TRANSITIONS[current]:
                raise RuntimeError(
                    f"Cursor '{self._cursor_id}' cannot move from "
                    f"{current.name} to {target.name}."
                )

            if target is CursorState.READY:
                try:
                    self._initialise()
                except Exception:
                    self._state = CursorState.EXHAUSTED
                    self._release_resources()
                    raise
                self._state = CursorState.READY
            else:
                self._state = CursorState.EXHAUSTED
                self._release_resources()

    @with_cursor_logger
    @log_method_call
    def _initialise(self):
        self._session = self._negotiator.negotiate()
        self._raw_cursor = self._store.open_cursor(
            filter_criteria=self._config.filter_criteria,
            collection=self.collection_name,
            batch_size=self._config.batch_size,
            no_cursor_timeout=self._config.no_cursor_timeout,
            session=self._session,
        )
        keep_alive = SessionKeepAlive(
            self._store,
            self._session,
            self._logger,
            refresh_interval=self._config.refresh_interval,
        )
        self._iterator = BatchIterator(
            raw_cursor=self._raw_cursor,
            decoder=self._store.decoder,
            record_type=self._config.collection.record_type,
            batch_size=self._config.batch_size,
            collection=self.collection_name,
            keep_alive=keep_alive,
            logger=self._logger,
            on_release=self.close,
        )

    def _release_resources(self):
        if self._iterator is not None:
            self._iterator.close()

        raw_cursor, self._raw_cursor = self._raw_cursor, None
        session, self._session = self._session, None
        try:
            if raw_cursor is not None:
                raw_cursor.close()
        finally:
            if session is not None:
                session.end()
        self._logger.debug(f"Released the resources of cursor '{self._cursor_id}'.")
