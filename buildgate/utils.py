import asyncio
import codecs
import logging
import os
import shutil
import signal
from asyncio import create_subprocess_exec
from asyncio.subprocess import Process
from dataclasses import dataclass
from pathlib import Path
from subprocess import DEVNULL, PIPE

from buildgate.const import KILL_GRACE, TIMEOUT_MARKER
from buildgate.exceptions import ErrorKind, RunError
from buildgate.schemas import ProcessResult

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096


def get_bin(name: str) -> str:
    return shutil.which(name) or name


GIT = get_bin('git')


def library_path_env(path: str | Path) -> dict[str, str]:
    return {'LD_LIBRARY_PATH': str(path)}


def format_command(args) -> str:
    return ' '.join(str(x) for x in args)


@dataclass
class Completed:
    exit_code: int


@dataclass
class TimedOut:
    pass


class OutputCollector:
    """Accumulates both streams of a process in arrival order, logging each line"""

    def __init__(self):
        self._chunks: list[str] = []

    @property
    def text(self) -> str:
        return ''.join(self._chunks)

    def append(self, text: str):
        self._chunks.append(text)

    async def pump(self, stream: asyncio.StreamReader, level: int):
        decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
        pending = ''
        while chunk := await stream.read(READ_CHUNK_SIZE):
            text = decoder.decode(chunk)
            self._chunks.append(text)
            *lines, pending = (pending + text).split('\n')
            for line in lines:
                logger.log(level, line)
        tail = decoder.decode(b'', final=True)
        if tail:
            self._chunks.append(tail)
        if pending + tail:
            logger.log(level, pending + tail)


async def _wait(p: Process, output: OutputCollector, timeout: float):
    async def communicate():
        await asyncio.gather(
            output.pump(p.stdout, logging.INFO),
            output.pump(p.stderr, logging.WARNING),
        )
        return await p.wait()

    try:
        return Completed(await asyncio.wait_for(communicate(), timeout))
    except asyncio.TimeoutError:
        return TimedOut()


def _terminate_group(p: Process):
    # the child leads its own session, so its pid is also the process group id
    try:
        os.killpg(p.pid, signal.SIGTERM)
    except ProcessLookupError:
        logger.debug(f'Process group {p.pid} already exited')


async def execute(
    *args: str | Path,
    cwd: Path | str,
    timeout: float,
    extra_env: dict[str, str] | None = None,
) -> ProcessResult:
    """Run a command to completion or until ``timeout`` seconds pass.

    A nonzero exit code is returned, not raised; callers decide what it means.
    Raises RunError if the command can't be started or times out, in the latter
    case the whole process group is terminated and the output captured so far is
    kept in the error.
    """
    command = format_command(args)
    logger.debug(f'Running {args} in {cwd} with timeout {timeout}s')
    env = os.environ | extra_env if extra_env else None
    try:
        p = await create_subprocess_exec(
            *args,
            cwd=cwd,
            stdin=DEVNULL,
            stdout=PIPE,
            stderr=PIPE,
            env=env,
            start_new_session=True,
        )
    except OSError as e:
        raise RunError(
            ErrorKind.spawn_failed, f"'{command}' failed to start in {cwd}: {e}"
        ) from e

    output = OutputCollector()
    outcome = await _wait(p, output, timeout)
    if isinstance(outcome, TimedOut):
        output.append(TIMEOUT_MARKER)
        logger.error(TIMEOUT_MARKER)
        _terminate_group(p)
        message = f"'{command}' failed in {cwd}: timeout"
        try:
            await asyncio.wait_for(p.wait(), KILL_GRACE)
        except asyncio.TimeoutError:
            logger.error(
                f'Process group {p.pid} still running {KILL_GRACE}s after SIGTERM'
            )
            message += f', process group {p.pid} still running after SIGTERM'
        raise RunError(ErrorKind.process_timeout, message, output.text)
    logger.debug(f'{command} exited with code {outcome.exit_code}')
    return ProcessResult(exit_code=outcome.exit_code, output=output.text)
