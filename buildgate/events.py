import hashlib
import hmac
import logging

from pydantic import ValidationError

from buildgate.schemas import CommitEvent
from buildgate.schemas.github import WebhookPayload

logger = logging.getLogger(__name__)


def verify_signature(secret: str | None, body: bytes, header: str | None) -> bool:
    if not secret or not header:
        return False
    expected = 'sha256=' + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, header)


def parse_event(
    payload: dict, baseline_branches: dict[str, str] | None = None
) -> CommitEvent | None:
    """Turn a webhook payload into a CommitEvent, or None if it doesn't start a run.

    ``baseline_branches`` maps repository names to their baseline branch, pushes
    to repositories missing from it are matched against ``master``.
    """
    try:
        data = WebhookPayload.model_validate(payload)
    except ValidationError as e:
        logger.info(f'Unrecognized payload: {e}')
        return None

    action = data.action
    if action is None:
        repo_name = data.repository.name
        baseline_branch = (baseline_branches or {}).get(repo_name, 'master')
        if data.ref != f'refs/heads/{baseline_branch}' or not data.after:
            logger.info(f'Ignoring push to {data.ref} of {repo_name}')
            return None
        logger.info(f'Commit pushed into {baseline_branch} of {repo_name}')
        return CommitEvent(
            repo_name=repo_name,
            commit_id=data.after,
            branch=baseline_branch,
        )

    if action in ('opened', 'synchronize') and data.pull_request is not None:
        logger.info(f'Commit pushed into pull request #{data.number}')
        return CommitEvent(
            repo_name=data.repository.name,
            commit_id=data.pull_request.head.sha,
            branch=data.pull_request.head.ref,
            pull_request_num=data.number,
        )

    logger.info(f'Unhandled action: {action}')
    return None
