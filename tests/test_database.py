"""Tests for the MongoDB connection helpers."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from pymongo.errors import ServerSelectionTimeoutError

from healthrecords.core import database


class TestDatabase:
    @pytest.mark.asyncio
    async def test_connect_pings_server(self):
        with patch("healthrecords.core.database.async_client") as mock_client:
            mock_client.admin.command = AsyncMock(return_value={"ok": 1})

            assert await database.connect_to_mongodb() is True
            mock_client.admin.command.assert_awaited_once_with("ping")

    @pytest.mark.asyncio
    async def test_connect_failure_is_reported(self):
        with patch("healthrecords.core.database.async_client") as mock_client:
            mock_client.admin.command = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))

            assert await database.connect_to_mongodb() is False

    @pytest.mark.asyncio
    async def test_close_uses_only_the_async_client(self):
        with patch("healthrecords.core.database.async_client", MagicMock()) as mock_client:
            await database.close_mongodb_connection()

        mock_client.close.assert_called_once_with()
        assert not hasattr(database, "sync_client")
