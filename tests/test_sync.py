"""Tests for repository synchronization."""

from pathlib import Path
from unittest.mock import patch

import pytest

from buildgate.const import GIT_TIMEOUT
from buildgate.exceptions import ErrorKind, RunError
from buildgate.runner.sync import synchronize
from buildgate.schemas import ProcessResult, RepoTarget

FOLDER = Path('/work/product')


def _target(branch='main', pull_timeout=GIT_TIMEOUT):
    return RepoTarget(folder=FOLDER, branch=branch, pull_timeout=pull_timeout)


class FakeGit:
    """Stands in for execute(), answering git commands from a table"""

    def __init__(self, outcomes=None):
        self.outcomes = outcomes or {}
        self.calls = []
        self.timeouts = {}

    async def __call__(self, *args, cwd, timeout, extra_env=None):
        command = ' '.join(args[1:])
        self.calls.append(command)
        self.timeouts[command] = timeout
        assert cwd == FOLDER
        outcome = self.outcomes.get(command, ProcessResult(exit_code=0, output=''))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


async def _synchronize(fake, target):
    with patch('buildgate.runner.sync.execute', fake):
        await synchronize(target)


@pytest.mark.asyncio
async def test_steps_run_in_order():
    fake = FakeGit()
    await _synchronize(fake, _target('feature/x'))
    assert fake.calls == [
        'reset --hard',
        'clean -f',
        'fetch origin',
        'checkout feature/x',
        'pull',
    ]


@pytest.mark.asyncio
async def test_pull_uses_target_timeout():
    fake = FakeGit()
    await _synchronize(fake, _target(pull_timeout=1200))
    assert fake.timeouts['pull'] == 1200
    assert fake.timeouts['fetch origin'] == GIT_TIMEOUT


@pytest.mark.asyncio
async def test_pull_failure_recovered_by_reset_to_origin():
    fake = FakeGit({'pull': ProcessResult(exit_code=1, output='diverged')})
    await _synchronize(fake, _target('main'))
    assert fake.calls[-2:] == ['pull', 'reset --hard origin/main']
    assert fake.calls.count('reset --hard origin/main') == 1


@pytest.mark.asyncio
async def test_pull_and_reset_failure_combines_errors():
    fake = FakeGit(
        {
            'pull': RunError(ErrorKind.process_timeout, 'M1', 'O1'),
            'reset --hard origin/main': RunError(ErrorKind.process_timeout, 'M2', 'O2'),
        }
    )
    with pytest.raises(RunError) as exc_info:
        await _synchronize(fake, _target('main'))
    assert exc_info.value.message == 'M1. M2'
    assert exc_info.value.output == 'O1\nO2'
    assert exc_info.value.kind == ErrorKind.synchronization
    assert fake.calls.count('reset --hard origin/main') == 1


@pytest.mark.asyncio
async def test_pull_and_reset_nonzero_exit_messages():
    fake = FakeGit(
        {
            'pull': ProcessResult(exit_code=1, output='O1'),
            'reset --hard origin/dev': ProcessResult(exit_code=128, output='O2'),
        }
    )
    with pytest.raises(RunError) as exc_info:
        await _synchronize(fake, _target('dev'))
    message = exc_info.value.message
    assert "'git pull'" in message
    assert 'return value is 1. ' in message
    assert message.endswith('return value is 128')
    assert exc_info.value.output == 'O1\nO2'


@pytest.mark.parametrize(
    'failing', ['reset --hard', 'clean -f', 'fetch origin', 'checkout main']
)
@pytest.mark.asyncio
async def test_early_steps_are_fatal(failing):
    fake = FakeGit({failing: ProcessResult(exit_code=1, output='nope')})
    with pytest.raises(RunError) as exc_info:
        await _synchronize(fake, _target('main'))
    assert fake.calls[-1] == failing
    assert 'pull' not in fake.calls
    assert 'reset --hard origin/main' not in fake.calls
    assert exc_info.value.output == 'nope'
