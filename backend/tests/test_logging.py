import json
import logging

import pytest

from app.core.logging import StructuredLogger, log_operation, set_sid


def test_human_readable_record_carries_sid(caplog):
    log = StructuredLogger("shop-realtime.test")
    set_sid("sid-123")

    with caplog.at_level(logging.INFO, logger="shop-realtime.test"):
        log.info("joined room", shop_id="shop-1")

    set_sid(None)
    assert "[sid-123] joined room" in caplog.text
    assert "shop-1" in caplog.text


def test_json_in_production(caplog):
    log = StructuredLogger("shop-realtime.test")
    log._is_json = True

    with caplog.at_level(logging.WARNING, logger="shop-realtime.test"):
        log.warning("emit failed", event="order:update")

    record = json.loads(caplog.records[-1].getMessage())
    assert record["message"] == "emit failed"
    assert record["context"] == {"event": "order:update"}


@pytest.mark.anyio
async def test_log_operation_reraises(caplog):
    log = StructuredLogger("shop-realtime.test")

    @log_operation("check", log)
    async def check():
        raise ValueError("boom")

    with caplog.at_level(logging.WARNING, logger="shop-realtime.test"):
        with pytest.raises(ValueError):
            await check()

    assert "check failed" in caplog.text


def test_log_operation_sync_returns_value():
    @log_operation("add")
    def add(a, b):
        return a + b

    assert add(1, 2) == 3
