import logging
import time

from buildgate.config import Config
from buildgate.const import FAILED_LOGS_SUBDIR
from buildgate.exceptions import ErrorKind, RunError
from buildgate.runner import failure_logs
from buildgate.runner.lock import RunLock
from buildgate.runner.stage import Stage, StageRunner
from buildgate.schemas import CommitEvent, PipelineResult, StageResult

logger = logging.getLogger(__name__)


def section(title: str, output: str) -> str:
    return f'{title}:\n{output}'


class Runner:
    config: Config
    lock: RunLock
    stage_runner: StageRunner

    def __init__(
        self,
        config: Config,
        lock: RunLock | None = None,
        stage_runner: StageRunner | None = None,
    ):
        self.config = config
        self.lock = lock or RunLock(config.lock_file, stale=config.lock_stale)
        self.stage_runner = stage_runner or StageRunner(config)

    async def run_stages(self, event: CommitEvent, stages: list[Stage]) -> StageResult:
        """Run stages in order, stopping at the first one that doesn't pass.

        A stage that raises fails like one that returns a failing result, its
        error text becomes the section of that stage.
        """
        sections = []
        for stage in stages:
            logger.info(f'{stage.title}...')
            try:
                result = await stage.action()
            except Exception as e:
                error = RunError.wrap(e)
                logger.error(
                    f'{stage.title} for commit {event.commit_id} '
                    f"(branch '{event.branch}') failed: {error.message}"
                )
                sections.append(section(stage.title, error.text))
                return StageResult(passed=False, output='\n\n'.join(sections))
            if not result.passed:
                logger.error(f'{stage.title} failed')
                sections.append(section(stage.title, result.output))
                return StageResult(passed=False, output='\n\n'.join(sections))
            if stage.reported:
                sections.append(section(stage.title, result.output))
        return StageResult(passed=True, output='\n\n'.join(sections))

    async def collect_failure_logs(self) -> str:
        try:
            return await failure_logs.collect(
                self.config.product_repo.folder / FAILED_LOGS_SUBDIR
            )
        except Exception as e:
            error = RunError.wrap(e, kind=ErrorKind.log_collection)
            logger.warning(f'Unable to read gtest-parallel logs: {error.message}')
            return ''

    async def run_cycle(self, event: CommitEvent) -> StageResult:
        try:
            result = await self.run_stages(event, self.stage_runner.stages(event))
        except Exception as e:
            error = RunError.wrap(e)
            logger.error(
                f'Running test cycle for commit {event.commit_id} '
                f"(branch '{event.branch}') failed: {error.message}"
            )
            return StageResult(passed=False, output=error.text)
        if not result.passed:
            result.output += await self.collect_failure_logs()
        return result

    async def run(self, event: CommitEvent) -> PipelineResult:
        async with self.lock.held(event.owner_id, self.config.lock_wait):
            start = time.monotonic()
            result = await self.run_cycle(event)
            total_test_time = time.monotonic() - start
        logger.info(
            f'Commit {event.commit_id} '
            f'{"passed" if result.passed else "failed"} in {total_test_time:.1f}s'
        )
        return PipelineResult(
            tests_passed=result.passed,
            test_output=result.output,
            total_test_time=total_test_time,
        )
