from pydantic import BaseModel


class Repository(BaseModel):
    name: str


class PullRequestHead(BaseModel):
    sha: str
    ref: str


class PullRequest(BaseModel):
    head: PullRequestHead


class WebhookPayload(BaseModel):
    """Subset of the pull_request and push webhook payloads the runner reads"""

    repository: Repository
    action: str | None = None
    number: int | None = None
    pull_request: PullRequest | None = None
    ref: str | None = None
    after: str | None = None
