"""
Database availability probing.

wait_for_database() is called once while the ASGI application is built. It
opens a connection on the default alias and runs ``SELECT 1``; on failure it
closes the broken connection, sleeps for a fixed delay and tries again, up to
DATABASE_CONNECT_MAX_RETRIES attempts. When every attempt fails the process
keeps starting: requests that need the database will fail individually and
the health check reports ``"database": "disconnected"`` until it recovers.

Per-connection timeouts (connect_timeout, CONN_MAX_AGE) are configured in
settings.DATABASES.
"""

from __future__ import annotations

import logging
import time

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, OperationalError, connections

logger = logging.getLogger(__name__)


def check_database(using: str = DEFAULT_DB_ALIAS) -> bool:
    """Return True when ``SELECT 1`` succeeds on the given alias."""
    try:
        with connections[using].cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except OperationalError as exc:
        logger.warning(f"Database '{using}' unavailable: {exc}")
        connections[using].close()
        return False
    return True


def wait_for_database(
    using: str = DEFAULT_DB_ALIAS,
    max_retries: int | None = None,
    retry_delay: float | None = None,
    sleep=time.sleep,
) -> bool:
    """
    Probe the database until it answers or the retry budget is spent.

    Args:
        using: Database alias to probe
        max_retries: Retries after the first attempt (settings default)
        retry_delay: Seconds between attempts (settings default)
        sleep: Sleep function, replaceable in tests

    Returns:
        True when connected, False when running without a database
    """
    if max_retries is None:
        max_retries = settings.DATABASE_CONNECT_MAX_RETRIES
    if retry_delay is None:
        retry_delay = settings.DATABASE_CONNECT_RETRY_DELAY

    for attempt in range(max_retries + 1):
        if check_database(using):
            if attempt:
                logger.info(f"Connected to database '{using}' after {attempt} retries")
            return True
        if attempt < max_retries:
            logger.info(
                f"Retrying database connection ({attempt + 1}/{max_retries}) "
                f"in {retry_delay}s"
            )
            sleep(retry_delay)

    logger.error(
        f"Database '{using}' unreachable after {max_retries} retries; "
        f"continuing without a database"
    )
    return False
