from datetime import datetime

import httpx
from joserfc import jwt
from joserfc.jwk import RSAKey

from buildgate.const import GH_API_BASE, MAX_STATUS_DESCRIPTION_LENGTH, STATUS_CONTEXT


def get_token(app_id: int, key: RSAKey) -> str:
    now = int(datetime.now().timestamp()) - 60
    data = {
        'iat': now,
        'exp': now + 60 * 10,
        'iss': app_id,
    }
    return jwt.encode({'alg': 'RS256'}, data, key)


class GitHubClient:
    """Minimal GitHub App client for posting commit statuses and comments"""

    owner: str
    app_id: int
    installation_id: int
    key: RSAKey
    base_url: str

    def __init__(
        self,
        owner: str,
        app_id: int,
        installation_id: int,
        key: RSAKey,
        base_url: str = GH_API_BASE,
    ):
        self.owner = owner
        self.app_id = app_id
        self.installation_id = installation_id
        self.key = key
        self.base_url = base_url

    async def get_installation_client(self) -> httpx.AsyncClient:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers={'Authorization': f'Bearer {get_token(self.app_id, self.key)}'},
        ) as app_client:
            resp = await app_client.post(
                f'/app/installations/{self.installation_id}/access_tokens'
            )
            resp.raise_for_status()
            installation_token = resp.json()['token']
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={'Authorization': f'Bearer {installation_token}'},
        )

    async def _post(self, url: str, json: dict):
        async with await self.get_installation_client() as client:
            resp = await client.post(url, json=json)
            resp.raise_for_status()

    async def set_commit_status(
        self, repo_name: str, sha: str, state: str, description: str, target_url=None
    ):
        data = {
            'state': state,
            'description': description[-MAX_STATUS_DESCRIPTION_LENGTH:],
            'context': STATUS_CONTEXT,
        }
        if target_url:
            data['target_url'] = target_url
        await self._post(f'/repos/{self.owner}/{repo_name}/statuses/{sha}', data)

    async def post_pull_request_comment(self, repo_name: str, number: int, body: str):
        await self._post(
            f'/repos/{self.owner}/{repo_name}/issues/{number}/comments', {'body': body}
        )

    async def post_commit_comment(self, repo_name: str, sha: str, body: str):
        await self._post(
            f'/repos/{self.owner}/{repo_name}/commits/{sha}/comments', {'body': body}
        )
