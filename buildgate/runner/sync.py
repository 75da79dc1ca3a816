import logging
from pathlib import Path

from buildgate.const import GIT_TIMEOUT
from buildgate.exceptions import ErrorKind, RunError
from buildgate.schemas import RepoTarget
from buildgate.utils import execute, GIT

logger = logging.getLogger(__name__)


async def git(*args: str, folder: Path, timeout: float = GIT_TIMEOUT):
    command = 'git ' + ' '.join(args)
    logger.info(f"Executing '{command}' in folder {folder} with timeout = {timeout}s...")
    try:
        result = await execute(GIT, *args, cwd=folder, timeout=timeout)
    except RunError as e:
        raise RunError(ErrorKind.synchronization, e.message, e.output) from e
    if result.exit_code:
        raise RunError(
            ErrorKind.synchronization,
            f"Error executing '{command}' in folder {folder}: "
            f'return value is {result.exit_code}',
            result.output,
        )
    logger.info(f"Successfully executed '{command}'")


async def reset_repo(folder: Path):
    await git('reset', '--hard', folder=folder)
    await git('clean', '-f', folder=folder)


async def fetch_repo(folder: Path):
    await git('fetch', 'origin', folder=folder)


async def checkout_repo(folder: Path, branch: str):
    await git('checkout', branch, folder=folder)


async def reset_repo_to_origin(folder: Path, branch: str):
    await git('reset', '--hard', f'origin/{branch}', folder=folder)


async def pull_repo(folder: Path, branch: str, pull_timeout: float = GIT_TIMEOUT):
    try:
        await git('pull', folder=folder, timeout=pull_timeout)
    except RunError as pull_error:
        # the branch may have diverged from origin (rebase, force push), local
        # changes are already gone so snapping to the remote tip is safe
        logger.warning(
            f'Pulling {folder} failed: {pull_error.message}. Trying to reset to origin'
        )
        try:
            await reset_repo_to_origin(folder, branch)
        except RunError as reset_error:
            raise RunError.combine(pull_error, reset_error) from reset_error


async def synchronize(target: RepoTarget):
    try:
        await reset_repo(target.folder)
        await fetch_repo(target.folder)
        await checkout_repo(target.folder, target.branch)
        await pull_repo(target.folder, target.branch, target.pull_timeout)
    except RunError as e:
        logger.error(f'Preparing {target.folder} failed: {e.message}')
        raise
