import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable

from buildgate.config import Config, RepoSettings
from buildgate.const import (
    BUILD_TIMEOUT,
    INSTALL_DEPS_CMD,
    INSTALL_DEPS_REQUIREMENTS,
    INSTALL_TIMEOUT,
    PRODUCT_ANDROID_BUILD_CMD,
    PRODUCT_BUILD_AND_TEST_CMD,
    PRODUCT_CLEAN_CMD,
    SUPPORT_LIB_BUILD_CMD,
    SUPPORT_LIB_SUBDIR,
)
from buildgate.runner.sync import synchronize
from buildgate.schemas import CommitEvent, RepoTarget, StageResult
from buildgate.utils import execute, format_command, library_path_env

logger = logging.getLogger(__name__)


@dataclass
class Stage:
    name: str
    title: str
    action: Callable[[], Awaitable[StageResult]]
    # passing stages only contribute their output to the report when reported
    reported: bool = False


class StageRunner:
    config: Config

    def __init__(self, config: Config):
        self.config = config

    @property
    def support_lib_path(self) -> Path:
        return self.config.support_repo.folder / SUPPORT_LIB_SUBDIR

    @property
    def product_folder(self) -> Path:
        return self.config.product_repo.folder

    def targets(self, event: CommitEvent) -> list[RepoTarget]:
        res = []
        for repo in self.config.repos:
            branch = (
                event.branch if repo.name == event.repo_name else repo.baseline_branch
            )
            res.append(
                RepoTarget(
                    folder=repo.folder, branch=branch, pull_timeout=repo.pull_timeout
                )
            )
        return res

    async def run_command(
        self, *args: str, cwd: Path, timeout: float = BUILD_TIMEOUT
    ) -> StageResult:
        result = await execute(
            *args,
            cwd=cwd,
            timeout=timeout,
            extra_env=library_path_env(self.support_lib_path),
        )
        logger.info(f"'{format_command(args)}' done. Return code: {result.exit_code}")
        return StageResult.from_process(result)

    async def synchronize(self, target: RepoTarget) -> StageResult:
        await synchronize(target)
        return StageResult(passed=True, output='')

    async def install_deps(self, repo: RepoSettings) -> StageResult:
        if not (repo.folder / INSTALL_DEPS_REQUIREMENTS).is_file():
            logger.info(f'No {INSTALL_DEPS_REQUIREMENTS} in {repo.folder}, skipping')
            return StageResult(passed=True, output='')
        return await self.run_command(
            *INSTALL_DEPS_CMD, cwd=repo.folder, timeout=INSTALL_TIMEOUT
        )

    async def build_support_lib(self) -> StageResult:
        return await self.run_command(
            *SUPPORT_LIB_BUILD_CMD, cwd=self.config.support_repo.folder
        )

    async def clean_product(self) -> StageResult:
        return await self.run_command(*PRODUCT_CLEAN_CMD, cwd=self.product_folder)

    async def build_android(self) -> StageResult:
        return await self.run_command(
            *PRODUCT_ANDROID_BUILD_CMD, cwd=self.product_folder
        )

    async def build_and_test(self) -> StageResult:
        return await self.run_command(
            *PRODUCT_BUILD_AND_TEST_CMD, cwd=self.product_folder
        )

    def stages(self, event: CommitEvent) -> list[Stage]:
        res = []
        for repo, target in zip(self.config.repos, self.targets(event)):
            res.append(
                Stage(
                    f'sync-{repo.name}',
                    f'Preparing {repo.name} ({target.branch})',
                    lambda target=target: self.synchronize(target),
                )
            )
        for repo in (self.config.support_repo, self.config.product_repo):
            res.append(
                Stage(
                    f'install-{repo.name}',
                    f'Installing dependencies of {repo.name}',
                    lambda repo=repo: self.install_deps(repo),
                )
            )
        res += [
            Stage(
                'build-support-lib',
                f'Building {self.config.support_repo.name}',
                self.build_support_lib,
            ),
            Stage('clean', 'Cleaning', self.clean_product),
            Stage('android-build', 'Building Android', self.build_android, True),
            Stage('test', 'Building and Testing Linux', self.build_and_test, True),
        ]
        return res
