from logging import LoggerAdapter
from typing import Callable
from typing import Optional
from typing import Tuple
from typing import Type
from typing import TypeVar

from eventlet.greenthread import sleep
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import model_validator

from docbatch.cursor import config as cursor_config

T = TypeVar("T")


class RetryState(BaseModel):
    max_attempts: int = Field(ge=1)
    backoff_period: float = Field(ge=0)
    attempts: int = Field(default=0, ge=0)

    model_config = ConfigDict(validate_assignment=True)

    @model_validator(mode="after")
    def check_attempts_within_budget(self):
        if self.attempts > self.max_attempts:
            raise ValueError(
                f"attempts={self.attempts} exceeds max_attempts={self.max_attempts}"
            )
        return self

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts


class BackoffExecutor:
    """
    Executes an operation up to 'max_attempts' times, sleeping a fixed
    'backoff_period' (seconds) between the attempts.

    Only the exceptions listed in 'retry_on' are retried, anything else
    propagates on its first occurrence. When the last attempt fails, its
    exception is re-raised unmodified.
    """

    def __init__(
        self,
        logger: LoggerAdapter,
        max_attempts: Optional[int] = None,
        backoff_period: Optional[float] = None,
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    ):
        self._logger = logger
        self._max_attempts = (
            max_attempts
            if max_attempts is not None
            else cursor_config.retry.max_attempts
        )
        self._backoff_period = (
            backoff_period
            if backoff_period is not None
            else cursor_config.retry.backoff_period
        )
        self._retry_on = retry_on

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    @property
    def backoff_period(self) -> float:
        return self._backoff_period

    def execute(self, operation: Callable[[], T]) -> T:
        state = RetryState(
            max_attempts=self._max_attempts, backoff_period=self._backoff_period
        )
        while True:
            self._logger.debug(f"Retry count: {state.attempts}")
            state.attempts += 1
            try:
                return operation()
            except self._retry_on as exc:
                if state.exhausted:
                    self._logger.error(
                        f"Giving up after {state.attempts} attempts. "
                        f"Exception type: '{type(exc)}' and exception message: '{exc}'"
                    )
                    raise

                self._logger.warning(
                    f"Operation failed, retrying in {state.backoff_period} seconds. "
                    f"Exception type: '{type(exc)}' and exception message: '{exc}'. "
                    f"Attempts={state.attempts}"
                )
                sleep(state.backoff_period)
