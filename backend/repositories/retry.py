"""Error translation and bounded retries for repository calls.

Reads are retried on transient database errors with exponential backoff.
Writes are never retried here: a write that fails while committing is reported
as an ambiguous ``RepositoryError`` and the caller must read before trying again.
"""

import logging
from functools import wraps

from sqlalchemy.exc import OperationalError, SQLAlchemyError, TimeoutError as PoolTimeoutError
from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from backend.core import config
from backend.scheduling.errors import RepositoryError

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (OperationalError, PoolTimeoutError, TimeoutError)

_log_retry = before_sleep_log(logger, logging.WARNING)


def _reset_session_before_retry(retry_state) -> None:
    repository = retry_state.args[0]
    repository.session.rollback()
    _log_retry(retry_state)


def read_operation(name: str):
    def decorator(func):
        retrying = retry(
            stop=stop_after_attempt(max(1, config.READ_RETRY_ATTEMPTS)),
            wait=wait_exponential(
                multiplier=config.READ_RETRY_MIN_SECONDS,
                min=config.READ_RETRY_MIN_SECONDS,
                max=config.READ_RETRY_MAX_SECONDS,
            ),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            before_sleep=_reset_session_before_retry,
            reraise=True,
        )(func)

        @wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return retrying(self, *args, **kwargs)
            except (SQLAlchemyError, TimeoutError) as exc:
                self.session.rollback()
                logger.exception('Repository read %s failed', name)
                raise RepositoryError(f'Database unavailable while running {name}.') from exc

        return wrapper

    return decorator
