from pathlib import Path
from pydantic import BaseModel, ConfigDict


class CommitEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    repo_name: str
    commit_id: str
    branch: str
    pull_request_num: int | None = None

    @property
    def owner_id(self) -> str:
        return f'{self.repo_name}@{self.commit_id}'


class RepoTarget(BaseModel):
    folder: Path
    branch: str
    pull_timeout: float


class ProcessResult(BaseModel):
    exit_code: int
    output: str


class StageResult(BaseModel):
    passed: bool
    output: str

    @classmethod
    def from_process(cls, result: ProcessResult) -> 'StageResult':
        return cls(passed=result.exit_code == 0, output=result.output)


class PipelineResult(BaseModel):
    tests_passed: bool
    test_output: str
    total_test_time: float
