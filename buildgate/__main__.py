import sys

import asyncio
import uvicorn

from buildgate.config import config
from buildgate.exceptions import RunError
from buildgate.runner import Runner
from buildgate.schemas import CommitEvent

USAGE = 'Usage: python -m buildgate server | run <repo> <branch> <commit>'


def run_once(repo_name: str, branch: str, commit_id: str) -> int:
    event = CommitEvent(repo_name=repo_name, commit_id=commit_id, branch=branch)
    try:
        result = asyncio.run(Runner(config).run(event))
    except RunError as e:
        print(e.text, file=sys.stderr)
        return 2
    print(result.model_dump_json(indent=2))
    return 0 if result.tests_passed else 1


def main(argv: list[str]) -> int:
    if len(argv) < 2:
        print(USAGE, file=sys.stderr)
        return 2
    if argv[1] == 'server':
        from buildgate.web import create_app

        uvicorn.run(create_app(config), host=config.host, port=config.port)
        return 0
    if argv[1] == 'run' and len(argv) == 5:
        return run_once(*argv[2:])
    print(USAGE, file=sys.stderr)
    return 2


if __name__ == '__main__':
    sys.exit(main(sys.argv))
