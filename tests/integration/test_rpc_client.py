"""Integration tests for the JSON-RPC client: endpoint fallback and error handling."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from savings_account.remotes import JsonRpcClient


@pytest.fixture()
def client() -> JsonRpcClient:
    return JsonRpcClient(
        (
            "https://rpc1.example.com",
            "https://rpc2.example.com",
            "https://rpc3.example.com",
        ),
        timeout=5,
    )


def _response(data: dict) -> AsyncMock:
    mock_response = AsyncMock()
    mock_response.json = AsyncMock(return_value=data)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)
    return mock_response


def _mock_session(response_data: dict | None = None, error: Exception | None = None):
    """Create a mock aiohttp session that returns given data or raises error."""
    mock_session = AsyncMock()
    if error:
        mock_session.post = MagicMock(side_effect=error)
    else:
        mock_session.post = MagicMock(return_value=_response(response_data or {}))
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


class TestConstruction:
    def test_requires_endpoint(self) -> None:
        with pytest.raises(ValueError):
            JsonRpcClient(())


class TestRpcCall:
    @pytest.mark.asyncio
    async def test_successful_call(self, client: JsonRpcClient) -> None:
        mock_session = _mock_session({"jsonrpc": "2.0", "result": {"transfers": []}})

        with patch("savings_account.remotes.rpc.aiohttp.ClientSession", return_value=mock_session):
            with patch("savings_account.remotes.rpc.aiohttp.TCPConnector"):
                result = await client.rpc_call("claimRewards", ["erd1d", []])

        assert result == {"transfers": []}
        args, kwargs = mock_session.post.call_args
        assert args[0] == "https://rpc1.example.com"
        assert kwargs["json"]["method"] == "claimRewards"
        assert kwargs["json"]["params"] == ["erd1d", []]

    @pytest.mark.asyncio
    async def test_request_ids_increment(self, client: JsonRpcClient) -> None:
        mock_session = _mock_session({"jsonrpc": "2.0", "result": {}})

        with patch("savings_account.remotes.rpc.aiohttp.ClientSession", return_value=mock_session):
            with patch("savings_account.remotes.rpc.aiohttp.TCPConnector"):
                await client.rpc_call("a", [])
                await client.rpc_call("b", [])

        ids = [c.kwargs["json"]["id"] for c in mock_session.post.call_args_list]
        assert ids == [1, 2]

    @pytest.mark.asyncio
    async def test_missing_result_is_empty(self, client: JsonRpcClient) -> None:
        mock_session = _mock_session({"jsonrpc": "2.0"})

        with patch("savings_account.remotes.rpc.aiohttp.ClientSession", return_value=mock_session):
            with patch("savings_account.remotes.rpc.aiohttp.TCPConnector"):
                assert await client.rpc_call("a", []) == {}

    @pytest.mark.asyncio
    async def test_rpc_error_raises(self, client: JsonRpcClient) -> None:
        mock_session = _mock_session(
            {"jsonrpc": "2.0", "error": {"code": -32000, "message": "bad"}}
        )

        with patch("savings_account.remotes.rpc.aiohttp.ClientSession", return_value=mock_session):
            with patch("savings_account.remotes.rpc.aiohttp.TCPConnector"):
                with pytest.raises(RuntimeError, match="All RPC endpoints failed"):
                    await client.rpc_call("a", [])

        assert mock_session.post.call_count == 3

    @pytest.mark.asyncio
    async def test_error_member_is_jsonrpc_error(self, client: JsonRpcClient) -> None:
        client.endpoints = client.endpoints[:1]
        mock_session = _mock_session({"jsonrpc": "2.0", "error": {"code": 1}})

        with patch("savings_account.remotes.rpc.aiohttp.ClientSession", return_value=mock_session):
            with patch("savings_account.remotes.rpc.aiohttp.TCPConnector"):
                with pytest.raises(RuntimeError) as exc:
                    await client.rpc_call("a", [])

        assert "RPC Error" in str(exc.value)

    @pytest.mark.asyncio
    async def test_fallback_on_connection_error(self, client: JsonRpcClient) -> None:
        """When the first endpoint fails, the next one is tried and kept."""
        call_count = 0
        success_response = _response({"jsonrpc": "2.0", "result": {"ok": True}})

        def side_effect(*args, **kwargs):
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                raise ConnectionError("first endpoint down")
            return success_response

        mock_session = AsyncMock()
        mock_session.post = MagicMock(side_effect=side_effect)
        mock_session.__aenter__ = AsyncMock(return_value=mock_session)
        mock_session.__aexit__ = AsyncMock(return_value=None)

        with patch("savings_account.remotes.rpc.aiohttp.ClientSession", return_value=mock_session):
            with patch("savings_account.remotes.rpc.aiohttp.TCPConnector"):
                result = await client.rpc_call("a", [])
                await client.rpc_call("b", [])

        assert result == {"ok": True}
        assert client.current_rpc_index == 1
        last_url = mock_session.post.call_args.args[0]
        assert last_url == "https://rpc2.example.com"

    @pytest.mark.asyncio
    async def test_all_endpoints_fail(self, client: JsonRpcClient) -> None:
        mock_session = _mock_session(error=ConnectionError("down"))

        with patch("savings_account.remotes.rpc.aiohttp.ClientSession", return_value=mock_session):
            with patch("savings_account.remotes.rpc.aiohttp.TCPConnector"):
                with pytest.raises(RuntimeError, match="Last error: down"):
                    await client.rpc_call("a", [])
