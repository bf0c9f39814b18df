# File: backend/app/cli/provision_cli.py
# Version: v0.1.0

"""
Command-line interface for provisioning a site and watching its workflow run.

Example:
    python -m backend.app.cli.provision_cli --title "Rust Notes" --topic "Rust ownership" \
        --template replica-template-01 --set siteType=guide --watch

With --watch, status events are printed as JSON lines until the terminal event.
Exit code is 0 when the dispatch (and, with --watch, the deployment) succeeded.
"""

import argparse
import asyncio
import logging
import sys
from typing import Dict, List, Optional, Tuple

from backend.app.core.config import Settings, settings
from backend.app.core.github.client import GitHubActionsClient
from backend.app.core.workflow.session import StatusSession
from backend.app.services.provisioning import ProvisionError, provision_site


def parse_assignment(pair: str) -> Tuple[str, str]:
    """argparse type for --set: 'key=value' -> (key, value)."""
    key, sep, value = pair.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"expected key=value, got {pair!r}")
    return key.strip(), value


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Provision a documentation site through GitHub Actions")
    p.add_argument("--title", required=True, help="Site title")
    p.add_argument("--topic", required=True, help="Documentation topic")
    p.add_argument("--template", default="replica-template-00", help="Template id")
    p.add_argument("--subdomain", help="Subdomain (generated when omitted)")
    p.add_argument("--set", dest="extra", type=parse_assignment, action="append", default=[], metavar="KEY=VALUE",
                   help="Extra config field; may be repeated")
    p.add_argument("--watch", action="store_true", help="Stream workflow status until it finishes")
    p.add_argument("--log-level", dest="log_level", default="INFO",
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                   help="Logging level (default: INFO)")
    return p


async def run(args: argparse.Namespace, cfg: Settings, client: GitHubActionsClient) -> int:
    log = logging.getLogger("provision_cli")

    values: Dict[str, object] = dict(args.extra)
    values.update({"template": args.template, "title": args.title, "topic": args.topic})
    if args.subdomain:
        values["subdomain"] = args.subdomain

    try:
        result = await provision_site(client, cfg, values)
    except ProvisionError as exc:
        log.error("Provisioning rejected (%s, HTTP %d): %s", exc.error, exc.status_code, exc.message)
        return 1

    log.info("Dispatched: subdomain=%s url=%s", result.subdomain, result.deploy_url)
    if not args.watch:
        return 0

    last = None
    async with StatusSession.from_settings(result.subdomain, client, cfg) as session:
        async for event in session.events():
            print(event.to_json(), flush=True)
            last = event
    return 0 if last is not None and last.deploy_url else 1


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), stream=sys.stderr)

    if not settings.GITHUB_TOKEN:
        logging.getLogger("provision_cli").error("GITHUB_TOKEN is not configured.")
        return 1

    async def _go() -> int:
        async with GitHubActionsClient(
            settings.GITHUB_TOKEN,
            settings.REPO_OWNER,
            settings.REPO_NAME,
            api_base=settings.GITHUB_API_BASE,
            timeout=settings.HTTP_TIMEOUT_S,
        ) as client:
            return await run(args, settings, client)

    return asyncio.run(_go())


if __name__ == "__main__":
    sys.exit(main())
