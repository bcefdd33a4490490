"""
Logging setup tests.
"""

import logging

from app.core.logging import LOG_FORMAT, TenantContextFilter


def _format(record: logging.LogRecord) -> str:
    TenantContextFilter().filter(record)
    return logging.Formatter(LOG_FORMAT).format(record)


def test_records_without_tenant_get_placeholder():
    record = logging.LogRecord("sqlalchemy", logging.WARNING, __file__, 1, "pool overflow", None, None)

    assert "[tenant=-] pool overflow" in _format(record)


def test_tenant_from_extra_is_kept():
    record = logging.LogRecord("app", logging.INFO, __file__, 1, "Contact group created", None, None)
    record.tenant_id = "11111111-1111-1111-1111-111111111111"

    assert "[tenant=11111111-1111-1111-1111-111111111111]" in _format(record)
