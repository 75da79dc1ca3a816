import asyncio
import logging
from datetime import datetime
from pathlib import Path

from buildgate.config import Config
from buildgate.const import LOG_FILE_PREFIX, MAX_COMMENT_LOG_LENGTH
from buildgate.exceptions import RunError
from buildgate.github import GitHubClient
from buildgate.mailer import Mailer
from buildgate.schemas import CommitEvent, PipelineResult

logger = logging.getLogger(__name__)


def timing_report(total_test_time: float, total_time: float) -> str:
    return (
        f'Testing took {total_test_time:.1f}s. '
        f'Total time: {total_time:.1f}s (including queue).'
    )


class Reporter:
    """Publishes pipeline outcomes: commit status, log file, comment and email"""

    config: Config
    github: GitHubClient
    mailer: Mailer

    def __init__(self, config: Config, github: GitHubClient, mailer: Mailer):
        self.config = config
        self.github = github
        self.mailer = mailer

    @classmethod
    def from_config(cls, config: Config) -> 'Reporter':
        config.check_reporting()
        github = GitHubClient(
            config.gh_owner, config.gh_app_id, config.gh_installation_id, config.gh_key
        )
        return cls(config, github, Mailer(config))

    def log_path(self, commit_id: str) -> Path:
        return self.config.logs_dir / f'{LOG_FILE_PREFIX}_{commit_id}'

    def log_url(self, commit_id: str) -> str:
        return f'{self.config.public_url.rstrip("/")}/logs/{LOG_FILE_PREFIX}_{commit_id}'

    async def save_log(self, commit_id: str, text: str):
        path = self.log_path(commit_id)
        logger.info(f'Saving log to file: {path}')
        await asyncio.to_thread(path.write_text, text)

    def result_message(
        self,
        event: CommitEvent,
        result: PipelineResult,
        total_time: float,
        short: bool = False,
    ) -> str:
        message = 'Tests passed.\n' if result.tests_passed else 'Tests failed.\n'
        message += timing_report(result.total_test_time, total_time)
        if short:
            return message
        message += f'\nSee full log at: {self.log_url(event.commit_id)}'
        if not result.tests_passed and result.test_output:
            message += (
                f'\n```\n{result.test_output[-MAX_COMMENT_LOG_LENGTH:]}\n```'
            )
        return message

    async def notify_in_progress(self, event: CommitEvent):
        started = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        await self.github.set_commit_status(
            event.repo_name, event.commit_id, 'pending', f'Tests started at {started}'
        )

    async def report_result(
        self, event: CommitEvent, result: PipelineResult, total_time: float
    ):
        logger.info(
            f'Timing of {event.commit_id}: '
            f'{timing_report(result.total_test_time, total_time)}'
        )
        full_message = self.result_message(event, result, total_time)
        await self.github.set_commit_status(
            event.repo_name,
            event.commit_id,
            'success' if result.tests_passed else 'failure',
            self.result_message(event, result, total_time, short=True),
            target_url=self.log_url(event.commit_id),
        )
        await self.save_log(event.commit_id, result.test_output)

        if event.pull_request_num is not None:
            await self.github.post_pull_request_comment(
                event.repo_name, event.pull_request_num, full_message
            )
        else:
            await self.github.post_commit_comment(
                event.repo_name, event.commit_id, full_message
            )
            if not result.tests_passed:
                await self.mailer.send(
                    self.config.notification_emails,
                    f'Tests failed in {event.branch} for commit {event.commit_id}',
                    full_message,
                )

    async def report_error(self, event: CommitEvent, error: RunError):
        try:
            if error.output:
                await self.save_log(event.commit_id, error.text)
                description = f'See full log at: {self.log_url(event.commit_id)}'
            else:
                description = error.message
            await self.github.set_commit_status(
                event.repo_name, event.commit_id, 'error', description
            )
        except Exception as e:
            logger.error(
                f'Error notifying test error (commit {event.commit_id}) to GitHub: {e}'
            )
