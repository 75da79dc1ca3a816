import os
import yaml
from joserfc.jwk import RSAKey
from pathlib import Path
from pydantic import BaseModel, BeforeValidator, AfterValidator, field_validator
from pydantic_core.core_schema import ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Annotated

from buildgate.const import GIT_TIMEOUT, LFS_TIMEOUT, LOCK_STALE, LOCK_WAIT
from buildgate.exceptions import ConfigurationError


def import_key(data):
    if data is None or isinstance(data, RSAKey):
        return data
    return RSAKey.import_key(data)


class RepoSettings(BaseModel):
    # repository name as reported by the code host, matched against CommitEvent.repo_name
    name: str
    folder: Path | None = None
    baseline_branch: str = 'master'
    pull_timeout: float = GIT_TIMEOUT


class Config(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix='BUILDGATE_',
        env_nested_delimiter='__',
        arbitrary_types_allowed=True,
    )

    host: str = '127.0.0.1'
    port: int = 8000
    debug: bool = False

    workspace_dir: Annotated[Path, AfterValidator(lambda path: path.absolute())] = (
        Path.home()
    )
    data_dir: Annotated[Path, AfterValidator(lambda path: path.absolute())] = (
        Path.home() / '.local' / 'share' / 'buildgate'
    )
    logs_dir: Path = None
    lock_file: Path = None

    support_repo: RepoSettings = RepoSettings(name='support-lib')
    assets_repo: RepoSettings = RepoSettings(name='test-files', pull_timeout=LFS_TIMEOUT)
    daemon_repo: RepoSettings = RepoSettings(name='daemon')
    product_repo: RepoSettings = RepoSettings(name='product')
    device_repo: RepoSettings = RepoSettings(name='device-link')

    lock_wait: float = LOCK_WAIT
    lock_stale: float = LOCK_STALE

    gh_owner: str | None = None
    gh_app_id: int | None = None
    gh_installation_id: int | None = None
    gh_key: Annotated[RSAKey | None, BeforeValidator(import_key)] = None
    webhook_secret: str | None = None
    public_url: str = 'http://localhost:8000'

    notification_emails: list[str] = []
    smtp_host: str = 'localhost'
    smtp_port: int = 587
    smtp_user: str = ''
    smtp_password: str = ''
    smtp_from: str = ''

    # noinspection PyNestedDecorators
    @field_validator('logs_dir', mode='before')
    @classmethod
    def default_logs_dir(cls, v: Path | None, info: ValidationInfo):
        if 'data_dir' not in info.data:
            # data_dir already failed validation, don't report this field as well
            return ''
        res = Path(v) if v is not None else info.data['data_dir'] / 'logs'
        res.mkdir(parents=True, exist_ok=True)
        return res

    # noinspection PyNestedDecorators
    @field_validator('lock_file', mode='before')
    @classmethod
    def default_lock_file(cls, v: Path | None, info: ValidationInfo):
        if v is not None:
            return v
        if 'workspace_dir' not in info.data:
            return ''
        return info.data['workspace_dir'] / 'buildgate.lock'

    # noinspection PyNestedDecorators
    @field_validator(
        'support_repo',
        'assets_repo',
        'daemon_repo',
        'product_repo',
        'device_repo',
    )
    @classmethod
    def default_repo_folder(cls, v: RepoSettings, info: ValidationInfo):
        if v.folder is not None or 'workspace_dir' not in info.data:
            return v
        return v.model_copy(update={'folder': info.data['workspace_dir'] / v.name})

    @property
    def repos(self) -> list[RepoSettings]:
        """Tracked repositories in the order they must be synchronized"""
        return [
            self.support_repo,
            self.assets_repo,
            self.daemon_repo,
            self.product_repo,
            self.device_repo,
        ]

    @property
    def baseline_branches(self) -> dict[str, str]:
        return {repo.name: repo.baseline_branch for repo in self.repos}

    def check_reporting(self):
        missing = [
            name
            for name in ('gh_owner', 'gh_app_id', 'gh_installation_id', 'gh_key')
            if getattr(self, name) is None
        ]
        if missing:
            raise ConfigurationError(
                f'GitHub reporting is not configured, missing: {", ".join(missing)}'
            )


def load_config() -> Config:
    config_home = Path(
        os.getenv('XDG_CONFIG_HOME') or os.path.expanduser('~/.config')
    )
    config_file = config_home / 'buildgate' / 'config.yml'
    if config_file.is_file():
        config_values = yaml.safe_load(config_file.read_text()) or {}
    else:
        config_values = {}
    return Config(**config_values, _env_file='.env')


config = load_config()

__all__ = ['Config', 'RepoSettings', 'config', 'load_config']
