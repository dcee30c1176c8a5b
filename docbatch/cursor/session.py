import time
from logging import LoggerAdapter
from typing import Callable
from typing import Optional

from docbatch.cursor import config as cursor_config
from docbatch.cursor.store import Session
from docbatch.cursor.store import StoreHandle
from docbatch.exceptions import SessionUnsupported


class SessionNegotiator:
    """
    Obtains, at most once, a causally consistent session from the store.

    When the store declares that it does not support sessions, either through
    its capability query or by raising SessionUnsupported, the negotiator
    falls back to sessionless mode for good and negotiate() returns None from
    then on. Any other exception is propagated as is.
    """

    def __init__(
        self,
        store: StoreHandle,
        logger: LoggerAdapter,
        causally_consistent: Optional[bool] = None,
    ):
        self._store = store
        self._logger = logger
        self._causally_consistent = (
            causally_consistent
            if causally_consistent is not None
            else cursor_config.session.causally_consistent
        )
        self._session: Optional[Session] = None
        self._has_session_support: Optional[bool] = None

    @property
    def has_session_support(self) -> Optional[bool]:
        return self._has_session_support

    @property
    def session(self) -> Optional[Session]:
        return self._session

    def negotiate(self) -> Optional[Session]:
        if self._has_session_support is not None:
            return self._session

        if not self._store.supports_sessions():
            self._fall_back("The store declared no session support.")
            return None

        try:
            session = self._store.start_session(
                causally_consistent=self._causally_consistent
            )
        except SessionUnsupported as exc:
            self._fall_back(exc.message)
            return None

        self._session = session
        self._has_session_support = True
        self._logger.info(
            f"Session '{session.session_id}' started, "
            f"causally consistent: {session.causally_consistent}."
        )
        return session

    def _fall_back(self, reason: str):
        self._has_session_support = False
        self._logger.warning(
            f"{reason} Reading without causal consistency guarantees."
        )


class SessionKeepAlive:
    """
    Refreshes a session on the store once 'refresh_interval' seconds have
    elapsed since the previous refresh. There is no timer, the check happens
    whenever refresh_if_due() is called by the iteration.
    """

    def __init__(
        self,
        store: StoreHandle,
        session: Optional[Session],
        logger: LoggerAdapter,
        refresh_interval: Optional[float] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self._store = store
        self._session = session
        self._logger = logger
        self._clock = clock or time.monotonic
        self._refresh_interval = None
        self._last_refresh = self._clock()
        self.set_refresh_interval(refresh_interval)

    @property
    def refresh_interval(self) -> Optional[float]:
        return self._refresh_interval

    def set_refresh_interval(self, refresh_interval: Optional[float]):
        if refresh_interval is not None and refresh_interval < 0:
            raise ValueError(
                f"Refresh interval should be non negative, got {refresh_interval}."
            )
        # 0 disables the refresh
        self._refresh_interval = refresh_interval or None

    def refresh_if_due(self):
        if self._session is None or self._refresh_interval is None:
            return

        now = self._clock()
        if now - self._last_refresh < self._refresh_interval:
            return

        self._store.refresh_session(self._session)
        self._last_refresh = now
        self._logger.debug(f"Session '{self._session.session_id}' refreshed.")
