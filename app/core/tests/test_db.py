"""
Tests for database probing and the health check.
"""

from unittest.mock import MagicMock, patch

import pytest
from django.db import OperationalError

from core.db import check_database, wait_for_database


class TestCheckDatabase:
    @pytest.mark.django_db
    def test_available(self):
        assert check_database() is True

    def test_broken_connection_is_closed(self):
        broken = MagicMock()
        broken.cursor.side_effect = OperationalError("down")

        with patch("core.db.connections", {"default": broken}):
            assert check_database() is False

        broken.close.assert_called_once_with()


class TestWaitForDatabase:
    """Retry loop of wait_for_database()."""

    def test_retries_until_available(self):
        sleeps = []

        with patch("core.db.check_database", side_effect=[False, False, True]):
            assert wait_for_database(max_retries=5, retry_delay=0.5, sleep=sleeps.append) is True

        assert sleeps == [0.5, 0.5]

    def test_gives_up_without_raising(self):
        """
        Startup continues when the database never answers.

        Why it matters: the process must come up so the health check can
        report the outage instead of the container crash-looping.
        """
        sleeps = []

        with patch("core.db.check_database", return_value=False) as probe:
            assert wait_for_database(max_retries=2, retry_delay=1, sleep=sleeps.append) is False

        assert probe.call_count == 3
        assert sleeps == [1, 1]


@pytest.mark.django_db
class TestHealthCheck:
    def test_healthy(self, client):
        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "connected"}

    def test_unhealthy(self, client):
        with patch("core.views.check_database", return_value=False):
            response = client.get("/health/")

        assert response.status_code == 503
        assert response.json()["database"] == "disconnected"
