"""Webhook server: receives GitHub events and runs the agent for them."""

from codeagent.webhook.handlers import SUPPORTED_EVENTS, handle_github_event
from codeagent.webhook.server import run_webhook_server, verify_signature

__all__ = ["SUPPORTED_EVENTS", "handle_github_event", "run_webhook_server", "verify_signature"]
