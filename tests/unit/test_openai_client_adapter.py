from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from visacheck.analysis.exceptions import AnalysisError, AnalysisNetworkError
from visacheck.analysis.openai_client_adapter import OpenAIClientAdapter


def _make_mock_response(content: str | None) -> MagicMock:
    choice = MagicMock()
    choice.message.content = content
    response = MagicMock()
    response.choices = [choice]
    return response


def _call(adapter: OpenAIClientAdapter) -> str:
    return adapter.create_chat_completion(
        model="gpt-4o-mini",
        temperature=0.3,
        max_tokens=4000,
        system_prompt="system",
        user_prompt="user",
    )


def _make_adapter(mock_client: MagicMock) -> OpenAIClientAdapter:
    with patch(
        "visacheck.analysis.openai_client_adapter.openai.OpenAI",
        return_value=mock_client,
    ):
        return OpenAIClientAdapter(api_key="k", timeout_seconds=90, base_url=None)


class TestOpenAIClientAdapter:
    def test_returns_content(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response('{"ok": true}')
        assert _call(_make_adapter(mock_client)) == '{"ok": true}'

    def test_sends_single_json_mode_completion(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response("{}")
        _call(_make_adapter(mock_client))

        mock_client.chat.completions.create.assert_called_once()
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 4000
        assert kwargs["messages"] == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "user"},
        ]

    def test_client_built_without_retries(self) -> None:
        with patch("visacheck.analysis.openai_client_adapter.openai.OpenAI") as mock_cls:
            OpenAIClientAdapter(api_key="k", timeout_seconds=90, base_url="http://llm")
        mock_cls.assert_called_once_with(
            api_key="k", timeout=90, base_url="http://llm", max_retries=0
        )

    def test_raises_error_for_empty_content(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response(None)
        with pytest.raises(AnalysisError, match="empty response"):
            _call(_make_adapter(mock_client))

    def test_raises_error_for_no_choices(self) -> None:
        mock_client = MagicMock()
        response = MagicMock()
        response.choices = []
        mock_client.chat.completions.create.return_value = response
        with pytest.raises(AnalysisError, match="no choices"):
            _call(_make_adapter(mock_client))

    def test_maps_timeout_to_network_error(self) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = openai.APITimeoutError(request=request)
        with pytest.raises(AnalysisNetworkError, match="timed out"):
            _call(_make_adapter(mock_client))

    def test_maps_connection_error_to_network_error(self) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = openai.APIConnectionError(
            request=request
        )
        with pytest.raises(AnalysisNetworkError, match="network error"):
            _call(_make_adapter(mock_client))

    def test_maps_httpx_timeout_to_network_error(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = httpx.ReadTimeout("slow")
        with pytest.raises(AnalysisNetworkError, match="timed out"):
            _call(_make_adapter(mock_client))

    def test_maps_rate_limit_to_quota_message(self) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        response = httpx.Response(429, request=request)
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = openai.RateLimitError(
            "rate limited", response=response, body=None
        )
        with pytest.raises(AnalysisNetworkError, match="quota exceeded"):
            _call(_make_adapter(mock_client))

    def test_maps_authentication_error(self) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        response = httpx.Response(401, request=request)
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = openai.AuthenticationError(
            "bad key", response=response, body=None
        )
        with pytest.raises(AnalysisNetworkError, match="Invalid AI provider API key"):
            _call(_make_adapter(mock_client))
