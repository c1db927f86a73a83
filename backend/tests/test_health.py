"""Tests for health check, request ids and error envelopes."""
import pytest


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "env": "test"}


@pytest.mark.asyncio
async def test_request_id_is_echoed(client):
    response = await client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"


@pytest.mark.asyncio
async def test_request_id_is_generated(client):
    response = await client.get("/health")
    assert response.headers.get("X-Request-ID")


@pytest.mark.asyncio
async def test_unknown_route_returns_404(client):
    response = await client.get("/api/v1/nope")
    assert response.status_code == 404


def test_log_records_carry_request_id():
    import logging

    from claimflow.core.logging import RequestIdFilter, request_id_var

    record = logging.LogRecord("claimflow", logging.INFO, __file__, 1, "hello", None, None)
    token = request_id_var.set("req-42")
    try:
        RequestIdFilter().filter(record)
    finally:
        request_id_var.reset(token)

    assert record.request_id == "req-42"


@pytest.mark.asyncio
async def test_building_an_app_leaves_process_state_alone(ctx):
    import sys

    from claimflow.core.limiter import limiter
    from claimflow.factory import create_app

    enabled = limiter.enabled
    ctx.settings.RATE_LIMIT_ENABLED = not enabled

    app = create_app(ctx)

    assert app.state.ctx is ctx
    assert limiter.enabled is enabled
    assert "claimflow.main" not in sys.modules
