"""Tests for configuration loading."""

import pytest

from buildgate.config import Config, load_config
from buildgate.const import GIT_TIMEOUT, LFS_TIMEOUT
from buildgate.exceptions import ConfigurationError


def test_repo_folders_default_to_workspace(config, tmp_path):
    assert config.product_repo.folder == tmp_path / 'workspace' / 'product'
    assert [r.name for r in config.repos] == [
        'support-lib',
        'test-files',
        'daemon',
        'product',
        'device-link',
    ]
    assert config.assets_repo.pull_timeout == LFS_TIMEOUT
    assert config.product_repo.pull_timeout == GIT_TIMEOUT
    assert config.lock_file == tmp_path / 'workspace' / 'buildgate.lock'
    assert config.logs_dir.is_dir()


def test_yaml_config_file(tmp_path, monkeypatch):
    config_dir = tmp_path / 'xdg' / 'buildgate'
    config_dir.mkdir(parents=True)
    (config_dir / 'config.yml').write_text(
        f'workspace_dir: {tmp_path}\n'
        f'data_dir: {tmp_path / "data"}\n'
        'port: 9000\n'
        'product_repo:\n'
        '  name: mobileproduct\n'
        '  folder: /srv/mobileproduct\n'
        '  baseline_branch: main\n'
    )
    monkeypatch.setenv('XDG_CONFIG_HOME', str(tmp_path / 'xdg'))
    config = load_config()
    assert config.port == 9000
    assert config.product_repo.name == 'mobileproduct'
    assert str(config.product_repo.folder) == '/srv/mobileproduct'
    assert config.product_repo.baseline_branch == 'main'
    assert config.daemon_repo.folder == tmp_path / 'daemon'


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv('BUILDGATE_LOCK_WAIT', '5')
    monkeypatch.setenv('BUILDGATE_DEVICE_REPO__NAME', 'device-link')
    monkeypatch.setenv('BUILDGATE_DEVICE_REPO__BASELINE_BRANCH', 'develop')
    config = Config(workspace_dir=tmp_path, data_dir=tmp_path / 'data')
    assert config.lock_wait == 5
    assert config.device_repo.baseline_branch == 'develop'
    assert config.device_repo.folder == tmp_path / 'device-link'


def test_check_reporting(config):
    with pytest.raises(ConfigurationError) as exc_info:
        config.check_reporting()
    assert 'gh_app_id' in str(exc_info.value)
