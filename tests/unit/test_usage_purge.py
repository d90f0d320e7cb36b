import asyncio
from unittest.mock import AsyncMock, MagicMock, call, patch

import psycopg
import pytest

from visacheck.api.usage import purge_usage_loop

_RUN_TARGET = "visacheck.api.usage.run_in_threadpool"
_SLEEP_TARGET = "visacheck.api.usage.asyncio.sleep"


class TestPurgeUsageLoop:
    @patch(_SLEEP_TARGET, new_callable=AsyncMock)
    @patch(_RUN_TARGET, new_callable=AsyncMock)
    def test_purges_on_every_tick_until_cancelled(
        self, mock_run: AsyncMock, mock_sleep: AsyncMock
    ) -> None:
        repository = MagicMock()
        mock_run.side_effect = [3, 0]
        mock_sleep.side_effect = [None, asyncio.CancelledError()]

        with pytest.raises(asyncio.CancelledError):
            asyncio.run(purge_usage_loop(repository, 90, 3600))

        assert mock_run.call_args_list == [call(repository.purge_expired, 90)] * 2
        assert mock_sleep.call_args_list == [call(3600)] * 2

    @patch(_SLEEP_TARGET, new_callable=AsyncMock)
    @patch(_RUN_TARGET, new_callable=AsyncMock)
    def test_database_error_does_not_stop_loop(
        self,
        mock_run: AsyncMock,
        mock_sleep: AsyncMock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        mock_run.side_effect = [psycopg.OperationalError("server closed"), 5]
        mock_sleep.side_effect = [None, asyncio.CancelledError()]

        with caplog.at_level("INFO", logger="visacheck"):
            with pytest.raises(asyncio.CancelledError):
                asyncio.run(purge_usage_loop(MagicMock(), 90, 60))

        assert "Error purging API usage: server closed" in caplog.text
        assert "Purged 5 api_usage rows older than 90 days" in caplog.text
