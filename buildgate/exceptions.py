import enum
from enum import Enum


class ConfigurationError(Exception):
    pass


class ErrorKind(Enum):
    queue_timeout = enum.auto()
    synchronization = enum.auto()
    process_timeout = enum.auto()
    spawn_failed = enum.auto()
    log_collection = enum.auto()
    unexpected = enum.auto()


class RunError(Exception):
    """Failure carrying whatever process output was captured before it.

    Every failure inside a run is normalized to this type so the output
    survives being passed between components.
    """

    kind: ErrorKind
    message: str
    output: str

    def __init__(self, kind: ErrorKind, message: str, output: str = ''):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.output = output or ''

    @classmethod
    def wrap(
        cls, exc: BaseException, output: str = '', kind: ErrorKind = ErrorKind.unexpected
    ) -> 'RunError':
        if isinstance(exc, RunError):
            return exc
        return cls(kind, str(exc) or type(exc).__name__, output)

    @classmethod
    def combine(cls, first: 'RunError', second: 'RunError') -> 'RunError':
        return cls(
            first.kind,
            f'{first.message}. {second.message}',
            f'{first.output}\n{second.output}',
        )

    @property
    def text(self) -> str:
        if self.output:
            return f'{self.message}\n{self.output}'
        return self.message

    def __repr__(self):
        return f'RunError({self.kind.name}, {self.message!r})'
