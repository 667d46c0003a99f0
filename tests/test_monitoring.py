"""
Tests for the JSON logger, request context and Slack alerts.
"""
import json
import logging
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from finder.monitoring import slack_alerts
from finder.monitoring.context import get_request_context, request_context, set_request_context
from finder.monitoring.logger import JsonFormatter, RequestContextFilter, log


def _record(**extra):
    record = logging.LogRecord("finder", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_fields():
    line = JsonFormatter().format(_record(component="operations", request_id="req-1",
                                          adapter="local", path="local://a.txt"))
    data = json.loads(line)

    assert data["level"] == "INFO"
    assert data["message"] == "hello world"
    assert data["component"] == "operations"
    assert data["request_id"] == "req-1"
    assert data["adapter"] == "local"
    assert data["path"] == "local://a.txt"
    assert "timestamp" in data


def test_json_formatter_defaults_component_to_module():
    data = json.loads(JsonFormatter().format(_record()))
    assert data["component"] == "test_monitoring"
    assert "request_id" not in data
    assert "adapter" not in data


def test_context_filter_fills_request_fields():
    record = _record(component="operations")

    with request_context("req-7"):
        set_request_context(adapter="media")
        RequestContextFilter().filter(record)

    data = json.loads(JsonFormatter().format(record))
    assert data["request_id"] == "req-7"
    assert data["adapter"] == "media"


def test_context_filter_keeps_explicit_fields():
    record = _record(request_id="explicit")

    with request_context("req-7"):
        RequestContextFilter().filter(record)

    assert record.request_id == "explicit"


def test_request_context_is_scoped():
    before = get_request_context()

    with request_context("req-42"):
        set_request_context(adapter="media")
        assert get_request_context() == {"request_id": "req-42", "adapter": "media"}

    assert get_request_context() == before


def test_log_accepts_module_and_extra_fields():
    log("INFO", "listing done", module="operations", count=3)
    log("DEBUG", "debug line")
    log("ERROR", "error line", component="api", module="ignored", request_id="r", adapter="local")


@pytest.mark.asyncio
async def test_slack_alert_without_webhook(monkeypatch):
    monkeypatch.setattr(slack_alerts.settings, "SLACK_WEBHOOK_URL", None)
    post = AsyncMock()
    monkeypatch.setattr(httpx.AsyncClient, "post", post)

    await slack_alerts.send_slack_alert("boom", module="test")

    post.assert_not_called()


@pytest.mark.asyncio
async def test_slack_alert_posts_payload(monkeypatch):
    monkeypatch.setattr(slack_alerts.settings, "SLACK_WEBHOOK_URL", "https://hooks.example.com/x")
    post = AsyncMock(return_value=MagicMock(status_code=200))
    monkeypatch.setattr(httpx.AsyncClient, "post", post)

    await slack_alerts.send_slack_alert("disk full", context={"path": "local://a"},
                                        severity="CRITICAL", module="main", request_id="req-1")

    post.assert_awaited_once()
    args, kwargs = post.call_args
    assert args[0] == "https://hooks.example.com/x"
    assert "[CRITICAL] [main] disk full" in kwargs["json"]["text"]
    assert "req-1" in kwargs["json"]["text"]


@pytest.mark.asyncio
async def test_slack_alert_names_request_adapter(monkeypatch):
    monkeypatch.setattr(slack_alerts.settings, "SLACK_WEBHOOK_URL", "https://hooks.example.com/x")
    post = AsyncMock(return_value=MagicMock(status_code=200))
    monkeypatch.setattr(httpx.AsyncClient, "post", post)

    with request_context("req-9"):
        set_request_context(adapter="media")
        await slack_alerts.send_slack_alert("write failed", module="operations")

    text = post.call_args.kwargs["json"]["text"]
    assert "Request ID: req-9" in text
    assert "Storage adapter: media" in text


@pytest.mark.asyncio
async def test_slack_alert_swallows_http_errors(monkeypatch):
    monkeypatch.setattr(slack_alerts.settings, "SLACK_WEBHOOK_URL", "https://hooks.example.com/x")
    monkeypatch.setattr(httpx.AsyncClient, "post",
                        AsyncMock(side_effect=httpx.ConnectError("unreachable")))

    await slack_alerts.send_slack_alert("disk full", module="main")
