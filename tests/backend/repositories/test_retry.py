import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from backend.repositories.retry import read_operation
from backend.scheduling.errors import RepositoryError


class RecordingSession:
    def __init__(self):
        self.rollbacks = 0

    def rollback(self) -> None:
        self.rollbacks += 1


class FlakyRepository:
    def __init__(self, failures: list[Exception]):
        self.session = RecordingSession()
        self.failures = failures
        self.calls = 0

    @read_operation('flaky lookup')
    def lookup(self, value: str) -> str:
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return value.upper()


def transient() -> OperationalError:
    return OperationalError('SELECT 1', {}, Exception('connection reset'))


def test_read_retries_transient_errors_then_succeeds() -> None:
    repository = FlakyRepository([transient(), transient()])

    assert repository.lookup('ok') == 'OK'
    assert repository.calls == 3
    assert repository.session.rollbacks == 2


def test_read_gives_up_after_bounded_attempts() -> None:
    repository = FlakyRepository([transient() for _ in range(5)])

    with pytest.raises(RepositoryError) as exception_info:
        repository.lookup('ok')

    assert repository.calls == 3
    assert exception_info.value.kind == 'RepositoryError'
    assert exception_info.value.ambiguous is False
    assert isinstance(exception_info.value.__cause__, OperationalError)


def test_non_transient_errors_are_not_retried() -> None:
    repository = FlakyRepository([IntegrityError('INSERT', {}, Exception('constraint'))])

    with pytest.raises(RepositoryError):
        repository.lookup('ok')

    assert repository.calls == 1


def test_read_preserves_function_metadata() -> None:
    assert FlakyRepository.lookup.__name__ == 'lookup'
