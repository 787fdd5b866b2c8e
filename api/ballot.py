"""Vercel serverless function exposing a ballot over HTTP."""

import hmac
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Add the project root to the path so we can import core modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.ballot import Ballot
from core.commands import CommandError, execute_command
from core.config import config
from core.events import get_all_listeners
from core.events.jsonl import JsonLinesListener, read_events

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)

CALLER_HEADER = "x-ballot-caller"

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Ballot-Caller",
}


def build_ballot() -> Ballot:
    """Create the process-wide ballot from configuration.

    When BALLOT_EVENTS_PATH is set, previously recorded events are replayed
    and new events are appended to the same file.
    """
    listeners = get_all_listeners()
    events = []
    if config.BALLOT_EVENTS_PATH:
        events = read_events(config.BALLOT_EVENTS_PATH)
        listeners.append(JsonLinesListener(config.BALLOT_EVENTS_PATH))

    ballot = Ballot.restore(
        config.BALLOT_ADMINISTRATOR,
        config.proposal_names(),
        events,
        listeners=listeners,
    )
    logger.info(
        "Ballot ready: %d proposals, %d events replayed",
        ballot.num_proposals, len(events),
    )
    return ballot


ballot = build_ballot()


def read_command(request) -> Any:
    """Decode the JSON command in a POST request and fill in the caller.

    Raises:
        CommandError: wrong content type, or an admin-only command without
            the configured admin token
        json.JSONDecodeError: the body is not JSON
    """
    content_type = request.headers.get("content-type", "")
    if "application/json" not in content_type:
        raise CommandError(f"Unsupported content type: {content_type}")

    command = json.loads(request.body.decode("utf-8"))
    if not isinstance(command, dict):
        return command

    if "caller" not in command:
        caller = request.headers.get(CALLER_HEADER)
        if caller:
            command["caller"] = caller

    if command.get("action") == "register" and config.BALLOT_ADMIN_TOKEN:
        expected = f"Bearer {config.BALLOT_ADMIN_TOKEN}"
        supplied = request.headers.get("authorization", "")
        if not hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
            raise CommandError("Missing or invalid admin token", status=401)

    return command


def handler(request):
    """Handle incoming ballot commands.

    Accepts:
    - POST with JSON body: {"action": "register"|"vote"|"winner"|"state", ...}
      The caller identity is read from "caller" in the body, or from the
      X-Ballot-Caller header if the body leaves it out.

    The caller identity is taken on trust: nothing here proves that the
    client is who it claims to be. Set BALLOT_ADMIN_TOKEN to require a
    bearer token on "register" so that only the administrator's client can
    grant voting rights.

    Returns JSON with the command result.
    """
    if request.method == "OPTIONS":
        return create_response("", status=204, headers=PREFLIGHT_HEADERS)

    if request.method != "POST":
        return create_response({"error": "Method not allowed. Use POST."}, status=405)

    try:
        result = execute_command(ballot, read_command(request))
    except CommandError as e:
        return create_response({"error": str(e)}, status=e.status)
    except json.JSONDecodeError as e:
        return create_response({"error": f"Invalid JSON: {e}"}, status=400)
    except Exception as e:
        logger.exception("Unhandled error in ballot handler")
        return create_response({"error": f"Internal error: {e}"}, status=500)

    return create_response(result)


def create_response(
    body: dict[str, Any] | str,
    status: int = 200,
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Create a response object for Vercel."""
    response_headers = {
        "Content-Type": "application/json",
        "Access-Control-Allow-Origin": "*",
        **(headers or {}),
    }
    if isinstance(body, dict):
        body = json.dumps(body)

    return {
        "statusCode": status,
        "headers": response_headers,
        "body": body,
    }
