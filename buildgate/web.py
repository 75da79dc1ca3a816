import json
import logging
import time

from starlette.applications import Starlette
from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Mount, Route
from starlette.staticfiles import StaticFiles

from buildgate.config import Config
from buildgate.events import parse_event, verify_signature
from buildgate.exceptions import RunError
from buildgate.reporting import Reporter
from buildgate.runner import Runner
from buildgate.schemas import CommitEvent

logger = logging.getLogger(__name__)


async def handle_event(event: CommitEvent, runner: Runner, reporter: Reporter):
    queued = False
    try:
        await reporter.notify_in_progress(event)
        queued = True
        queue_start = time.monotonic()
        result = await runner.run(event)
        total_time = time.monotonic() - queue_start
        await reporter.report_result(event, result, total_time)
    except Exception as e:
        error = RunError.wrap(e)
        logger.exception(
            f'Unexpected exception (commit {event.commit_id}, '
            f"branch '{event.branch}'): {error.message}"
        )
        if queued:
            await reporter.report_error(event, error)


def create_app(
    config: Config, runner: Runner | None = None, reporter: Reporter | None = None
) -> Starlette:
    runner = runner or Runner(config)
    reporter = reporter or Reporter.from_config(config)
    baseline_branches = config.baseline_branches

    async def alive(request: Request):
        return Response(None, 200)

    async def webhook(request: Request):
        body = await request.body()
        if not verify_signature(
            config.webhook_secret, body, request.headers.get('x-hub-signature-256')
        ):
            logger.warning('Webhook signature verification failed')
            return Response('Invalid signature', 401)
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return Response('Invalid payload', 400)

        event = parse_event(payload, baseline_branches)
        if event is None:
            logger.info('Ignoring request')
            return Response(None, 204)
        return Response(
            None, 202, background=BackgroundTask(handle_event, event, runner, reporter)
        )

    return Starlette(
        debug=config.debug,
        routes=[
            Route('/', alive, methods=['GET']),
            Route('/github', webhook, methods=['POST']),
            Mount('/logs', StaticFiles(directory=config.logs_dir, check_dir=False)),
        ],
    )
