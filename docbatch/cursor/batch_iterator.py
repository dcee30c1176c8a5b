from contextlib import contextmanager
from enum import Enum
from enum import unique
from logging import LoggerAdapter
from typing import Any
from typing import Callable
from typing import List
from typing import Optional

from docbatch.cursor.decoder import Decoder
from docbatch.cursor.retry import BackoffExecutor
from docbatch.cursor.session import SessionKeepAlive
from docbatch.cursor.store import RawCursor
from docbatch.exceptions import CallerMisuseError
from docbatch.exceptions import DecodeError
from docbatch.exceptions import IterationAbortedError
from docbatch.exceptions import TransientProbeError


@unique
class IteratorState(Enum):
    READY = "ready"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class BatchIterator:
    """
    Pulls records from a raw store cursor and hands them out in batches of
    at most 'batch_size' decoded records.

    has_next() checks the store for more records. The check is retried,
    up to the configured attempts with a fixed backoff, when the store fails
    to answer. Once it returns False, it keeps returning False.

    next() returns the following batch. The caller should have confirmed,
    through has_next(), that there is one. The batch is filled with whatever
    the store has available, without waiting for more records to arrive.

    The raw cursor and the session are released, through 'on_release', as
    soon as the iterator gets exhausted, is closed or fails with an error that
    ends the iteration. After such an error the iterator is FAILED and every
    further has_next() or next() raises IterationAbortedError, so a failed
    iteration is never mistaken for a complete one.
    """

    def __init__(
        self,
        raw_cursor: RawCursor,
        decoder: Decoder,
        record_type: type,
        batch_size: int,
        collection: str,
        keep_alive: SessionKeepAlive,
        logger: LoggerAdapter,
        on_release: Callable[[], None],
        probe_executor: Optional[BackoffExecutor] = None,
    ):
        if batch_size < 1:
            raise ValueError(f"Batch size should be at least 1, got {batch_size}.")

        self._raw_cursor = raw_cursor
        self._decoder = decoder
        self._record_type = record_type
        self._batch_size = batch_size
        self._collection = collection
        self._keep_alive = keep_alive
        self._logger = logger
        self._on_release = on_release
        # Retrying is bound to the existence check only.
        self._probe_executor = probe_executor or BackoffExecutor(
            logger, retry_on=(TransientProbeError,)
        )

        self._state = IteratorState.READY
        self._failure: Optional[BaseException] = None
        self._drained = False
        self._records_read = 0

    @property
    def state(self) -> IteratorState:
        return self._state

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def records_read(self) -> int:
        return self._records_read

    def set_refresh_interval(self, refresh_interval):
        self._keep_alive.set_refresh_interval(refresh_interval)

    def has_next(self) -> bool:
        self._raise_if_failed()
        if self._state is IteratorState.EXHAUSTED:
            return False

        if self._drained:
            self._release()
            return False

        with self._release_on_error():
            self._keep_alive.refresh_if_due()
            has_next = self._probe_executor.execute(self._probe)

        if not has_next:
            self._logger.info(
                f"No more records in '{self._collection}', "
                f"{self._records_read} records read."
            )
            self._release()
        return has_next

    def next(self) -> List[Any]:
        self._raise_if_failed()
        if self._state is IteratorState.EXHAUSTED:
            raise CallerMisuseError(
                f"next() called on the exhausted iterator over '{self._collection}'."
            )

        with self._release_on_error():
            self._keep_alive.refresh_if_due()
            batch = [self._pull_first()]
            while len(batch) < self._batch_size:
                if not self._raw_cursor.has_next():
                    self._drained = True
                    break
                batch.append(self._decode(self._raw_cursor.next()))

        self._records_read += len(batch)
        if self._drained:
            self._release()
        return batch

    def close(self):
        self._release()

    def __iter__(self):
        return self

    def __next__(self) -> List[Any]:
        if not self.has_next():
            raise StopIteration
        return self.next()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _probe(self) -> bool:
        try:
            return self._raw_cursor.has_next()
        except Exception as exc:
            raise TransientProbeError(self._collection, exc) from exc

    def _pull_first(self) -> Any:
        try:
            raw_record = self._raw_cursor.next()
        except StopIteration:
            raise CallerMisuseError(
                f"next() called without a record available in '{self._collection}', "
                "has_next() should be checked first."
            ) from None
        return self._decode(raw_record)

    def _decode(self, raw_record: Any) -> Any:
        try:
            return self._decoder.decode(raw_record, self._record_type)
        except DecodeError as exc:
            self._logger.error(exc.message)
            raise

    def _raise_if_failed(self):
        if self._state is IteratorState.FAILED:
            raise IterationAbortedError(self._collection, self._failure)

    def _release(self, failure: Optional[BaseException] = None):
        if self._state is not IteratorState.READY:
            return
        if failure is None:
            self._state = IteratorState.EXHAUSTED
        else:
            self._state = IteratorState.FAILED
            self._failure = failure
        self._on_release()

    @contextmanager
    def _release_on_error(self):
        try:
            yield
        except Exception as exc:
            self._release(failure=exc)
            raise
