import asyncio
import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

ANSI_ESCAPE_RE = re.compile(r'\x1b\[[0-9;?]*[ -/]*[@-~]')
HEADER = '\nFailed C++ tests:'


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub('', text)


def _read(path: Path) -> str:
    return path.read_bytes().decode(errors='replace')


async def collect(log_dir: Path) -> str:
    """Concatenate per-test failure logs left by the test runner.

    Returns an empty string when the directory doesn't exist, which is the case
    whenever the run failed before any test case did.
    """
    try:
        files = sorted(x for x in log_dir.iterdir() if x.is_file())
    except FileNotFoundError:
        logger.info('No failed C++ tests found')
        return ''
    logger.info(
        'Waiting for all failed logs to be read: ' + ', '.join(x.name for x in files)
    )
    logs = await asyncio.gather(*(asyncio.to_thread(_read, x) for x in files))
    logger.info('Failed logs read successfully')
    return HEADER + ''.join('\n' + strip_ansi(log) for log in logs)
