import asyncio
import contextlib
import logging
import os
import time
from pathlib import Path

from buildgate.const import LOCK_POLL_INTERVAL, LOCK_STALE
from buildgate.exceptions import ErrorKind, RunError

logger = logging.getLogger(__name__)


class RunLock:
    """Host-wide lock file serializing pipeline runs.

    The file is created exclusively and holds the owner id. A file older than
    ``stale`` seconds is treated as left over by a crashed run and reclaimed.
    """

    path: Path
    stale: float
    poll_interval: float

    def __init__(
        self,
        path: Path,
        stale: float = LOCK_STALE,
        poll_interval: float = LOCK_POLL_INTERVAL,
    ):
        self.path = path
        self.stale = stale
        self.poll_interval = poll_interval

    def _try_create(self, owner: str) -> bool:
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        with os.fdopen(fd, 'w') as f:
            f.write(owner)
        return True

    def _reclaim_if_stale(self) -> bool:
        try:
            age = time.time() - self.path.stat().st_mtime
        except FileNotFoundError:
            return True
        if age < self.stale:
            return False
        logger.warning(f'Lock {self.path} is stale ({int(age)}s old), reclaiming')
        with contextlib.suppress(FileNotFoundError):
            self.path.unlink()
        return True

    def holder(self) -> str | None:
        try:
            return self.path.read_text()
        except FileNotFoundError:
            return None

    async def acquire(self, owner: str, max_wait: float) -> bool:
        logger.info(f'{owner} is waiting for lock...')
        deadline = time.monotonic() + max_wait
        while True:
            if self._try_create(owner):
                logger.info(f'Lock acquired for {owner}')
                return True
            if self._reclaim_if_stale():
                continue
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.error(
                    f'Unable to acquire lock for {owner} within {max_wait}s, '
                    f'held by {self.holder()}'
                )
                return False
            await asyncio.sleep(min(self.poll_interval, remaining))

    def release(self, owner: str):
        try:
            holder = self.holder()
            if holder is None:
                logger.error(f'Unable to release lock for {owner}: lock is not held')
                return
            if holder != owner:
                logger.error(
                    f'Unable to release lock for {owner}: lock is held by {holder}'
                )
                return
            self.path.unlink()
        except OSError as e:
            logger.error(f'Unable to release lock for {owner}: {e}')
            return
        logger.info(f'Lock released for {owner}')

    @contextlib.asynccontextmanager
    async def held(self, owner: str, max_wait: float):
        if not await self.acquire(owner, max_wait):
            raise RunError(ErrorKind.queue_timeout, 'Unable to lock')
        try:
            yield
        finally:
            self.release(owner)
