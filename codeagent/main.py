"""Code agent entry point.

Two modes: run (one event from a workflow event file) and serve (webhook
server). Usage: codeagent run --event-path FILE | codeagent serve.
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from codeagent.adapters.base import GitPlatformError
from codeagent.agents import AgentExecutionError
from codeagent.config import AppConfig, load_config
from codeagent.events.payload import EventPayloadError, load_event_payload
from codeagent.logging import CodeAgentLogging
from codeagent.runner import EmptySnapshotError, make_adapter, process_event, run_action
from codeagent.services.git import GitRunnerError

LOG = logging.getLogger("codeagent.main")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI with subcommand (run | serve)."""
    parser = argparse.ArgumentParser(
        prog="codeagent",
        description="Run a coding agent for GitHub issue and pull request events",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only load and validate config, then exit",
    )
    # Same options after the subcommand; SUPPRESS keeps the top-level values
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", "-c", type=Path, default=argparse.SUPPRESS)
    common.add_argument("--check", action="store_true", default=argparse.SUPPRESS)
    sub = parser.add_subparsers(dest="subcommand")
    run = sub.add_parser("run", parents=[common], help="Handle one event from an event payload file")
    run.add_argument(
        "--event-path",
        type=Path,
        default=None,
        help="Event payload JSON (default: $GITHUB_EVENT_PATH)",
    )
    sub.add_parser("serve", parents=[common], help="Start the webhook server")
    args = parser.parse_args(argv)
    if args.subcommand is None:
        args.subcommand = "run"
        args.event_path = None
    return args


def run_once(config: AppConfig, event_path: Path | None) -> int:
    """Handle one event file. 0 on success or skip, 1 on failure."""
    path = event_path or (Path(os.environ["GITHUB_EVENT_PATH"]) if os.environ.get("GITHUB_EVENT_PATH") else None)
    if path is None:
        LOG.error("No event payload: pass --event-path or set GITHUB_EVENT_PATH")
        return 1
    try:
        payload = load_event_payload(path)
    except EventPayloadError as e:
        LOG.error("%s", e)
        return 1

    processed = process_event(config, payload, log=LOG)
    if processed is None:
        return 0
    try:
        run_action(processed, make_adapter(processed.config), log=LOG)
    except ValueError as e:
        LOG.error("%s", e)
        return 1
    except (EmptySnapshotError, AgentExecutionError, GitPlatformError, GitRunnerError) as e:
        LOG.error("Run failed: %s", e)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point: dispatch to run or serve."""
    args = parse_args(argv)

    config_path = args.config
    if not config_path.is_file() and config_path == Path("config.yaml"):
        if Path("config.example.yaml").is_file():
            config_path = Path("config.example.yaml")
            logging.basicConfig(level=logging.INFO)
            LOG.warning("config.yaml not found, using config.example.yaml")

    config = load_config(config_path)
    CodeAgentLogging(config.logging, secrets=config.secret_values()).setup()

    if args.check:
        print("Config OK:", config.bot.repository, config.bot.workspace)
        return 0

    if args.subcommand == "serve":
        from codeagent.webhook.server import run_webhook_server

        try:
            run_webhook_server(config)
        except KeyboardInterrupt:
            return 0
        return 0

    return run_once(config, args.event_path)


if __name__ == "__main__":
    sys.exit(main())
