"""
Slack alerting for the Finder API.
"""
from typing import Dict, Optional

import httpx

from finder.config import settings
from finder.monitoring.context import get_request_context
from finder.monitoring.logger import log


def _alert_text(message: str, severity: str, module: Optional[str],
                request_id: Optional[str], adapter: Optional[str], context: Dict) -> str:
    lines = [f"[{settings.ENVIRONMENT}] [{severity}] [{module}] {message}"]
    lines.append(f"Request ID: {request_id}")
    if adapter:
        lines.append(f"Storage adapter: {adapter}")
    lines.append(f"Context: {context}")
    return "\n".join(lines)


async def send_slack_alert(message: str, context: Optional[Dict] = None, severity: str = "ERROR",
                           module: str = None, request_id: str = None):
    webhook_url = settings.SLACK_WEBHOOK_URL
    if not webhook_url:
        log("WARNING", "Slack webhook URL not configured", module=module, request_id=request_id)
        return

    request_context = get_request_context()
    request_id = request_id or request_context["request_id"]
    payload = {
        "text": _alert_text(message, severity, module, request_id,
                            request_context["adapter"], context or {})
    }
    try:
        async with httpx.AsyncClient() as client:
            await client.post(webhook_url, json=payload, timeout=5)
    except httpx.HTTPError as e:
        log("ERROR", f"Failed to send Slack alert: {e}", module=module, request_id=request_id)
