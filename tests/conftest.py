"""Shared test fixtures for buildgate."""

import os
import tempfile

# buildgate.config builds the global config on import, keep it out of $HOME
os.environ.setdefault('BUILDGATE_DATA_DIR', tempfile.mkdtemp(prefix='buildgate-'))

import pytest

from buildgate.config import Config
from buildgate.runner.lock import RunLock


@pytest.fixture
def config(tmp_path) -> Config:
    (tmp_path / 'workspace').mkdir()
    return Config(
        workspace_dir=tmp_path / 'workspace',
        data_dir=tmp_path / 'data',
        lock_wait=1,
        webhook_secret='s3cret',
        gh_owner='acme',
        public_url='http://ci.example.com',
        notification_emails=['dev@example.com'],
    )


@pytest.fixture
def lock(config) -> RunLock:
    return RunLock(config.lock_file, stale=config.lock_stale, poll_interval=0.01)
