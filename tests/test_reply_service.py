from unittest.mock import MagicMock, Mock, patch

import httpx
import pytest

from gostly.config import PipelineConfig
from gostly.services.llm import LLMProviderError, OpenAIProvider
from gostly.services.phrases import TECHNICAL_DIFFICULTY_REPLY, UNKNOWN_FACT_REPLY
from gostly.services.reply_service import build_system_prompt, generate_reply

KNOWLEDGE = "- Check-in: after 15:00\n- Wi-Fi: VillaAna123"


def _generate(provider, language="en", config=None):
    return generate_reply(
        provider,
        config or PipelineConfig(),
        property_name="Villa Ana",
        knowledge_text=KNOWLEDGE,
        guest_text="What is the Wi-Fi password?",
        language=language,
    )


class TestBuildSystemPrompt:
    def test_quotes_every_fallback_sentence_verbatim(self):
        prompt = build_system_prompt("Villa Ana", KNOWLEDGE, "en")

        for sentence in UNKNOWN_FACT_REPLY.values():
            assert f'"{sentence}"' in prompt

    def test_includes_property_and_knowledge(self):
        prompt = build_system_prompt("Villa Ana", KNOWLEDGE, "hr")

        assert "Villa Ana" in prompt
        assert "Wi-Fi: VillaAna123" in prompt
        assert "Croatian" in prompt

    def test_states_grounding_rules(self):
        prompt = build_system_prompt("Villa Ana", KNOWLEDGE, "en")

        assert "language the guest wrote in" in prompt
        assert "general tourism" in prompt
        assert "Use ONLY the property information" in prompt
        assert "parking" in prompt


class TestGenerateReply:
    def test_returns_stripped_completion(self, make_llm):
        provider = make_llm(content="  The password is VillaAna123.  \n")

        result = _generate(provider)

        assert result.text == "The password is VillaAna123."
        assert result.technical_failure is False

    def test_sends_system_and_user_messages_with_config(self, make_llm):
        provider = make_llm()
        config = PipelineConfig(model="gpt-test", llm_timeout_seconds=2.5, temperature=0.1, max_tokens=50)

        _generate(provider, config=config)

        call = provider.calls[0]
        assert call["model"] == "gpt-test"
        assert call["timeout_seconds"] == 2.5
        assert call["temperature"] == 0.1
        assert call["max_tokens"] == 50
        assert [m["role"] for m in call["messages"]] == ["system", "user"]
        assert call["messages"][1]["content"] == "What is the Wi-Fi password?"

    def test_timeout_returns_technical_fallback(self, make_llm):
        provider = make_llm(error=httpx.ReadTimeout("timed out"))

        result = _generate(provider, language="hr")

        assert result.text == TECHNICAL_DIFFICULTY_REPLY["hr"]
        assert result.technical_failure is True

    def test_provider_error_returns_technical_fallback(self, make_llm):
        provider = make_llm(error=LLMProviderError("OpenAI API error: 500"))

        result = _generate(provider)

        assert result.text == TECHNICAL_DIFFICULTY_REPLY["en"]
        assert result.technical_failure is True

    def test_missing_provider_returns_technical_fallback(self):
        result = _generate(None, language="de")

        assert result.text == TECHNICAL_DIFFICULTY_REPLY["de"]
        assert result.technical_failure is True

    def test_empty_completion_becomes_unknown_fact_sentence(self, make_llm):
        provider = make_llm(content="   ")

        result = _generate(provider, language="de")

        assert result.text == UNKNOWN_FACT_REPLY["de"]
        assert result.technical_failure is False

    def test_empty_question_skips_model(self, make_llm):
        provider = make_llm()

        result = generate_reply(
            provider,
            PipelineConfig(),
            property_name="Villa Ana",
            knowledge_text=KNOWLEDGE,
            guest_text="",
            language="en",
        )

        assert result.text == UNKNOWN_FACT_REPLY["en"]
        assert result.technical_failure is False
        assert provider.calls == []


class TestOpenAIProvider:
    @patch("gostly.services.llm.openai_provider.httpx.Client")
    def test_parses_completion(self, mock_client_class):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        mock_response = Mock()
        mock_response.status_code = 200
        mock_response.json.return_value = {
            "model": "gpt-4o-mini",
            "choices": [{"message": {"content": "Check-in is after 15:00."}}],
            "usage": {"total_tokens": 42},
        }
        mock_client.post.return_value = mock_response

        provider = OpenAIProvider("test-key")
        response = provider.generate([{"role": "user", "content": "hi"}], timeout_seconds=3)

        assert response.content == "Check-in is after 15:00."
        assert response.usage == {"total_tokens": 42}
        mock_client_class.assert_called_once_with(timeout=3)
        call_args = mock_client.post.call_args
        assert call_args[1]["headers"]["Authorization"] == "Bearer test-key"
        assert call_args[1]["json"]["model"] == "gpt-4o-mini"

    @patch("gostly.services.llm.openai_provider.httpx.Client")
    def test_non_200_raises(self, mock_client_class):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        mock_response = Mock()
        mock_response.status_code = 429
        mock_response.text = "rate limited"
        mock_client.post.return_value = mock_response

        with pytest.raises(LLMProviderError):
            OpenAIProvider("test-key").generate([{"role": "user", "content": "hi"}])

    @patch("gostly.services.llm.openai_provider.httpx.Client")
    def test_missing_choices_gives_empty_content(self, mock_client_class):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        mock_response = Mock()
        mock_response.status_code = 200
        mock_response.json.return_value = {"choices": []}
        mock_client.post.return_value = mock_response

        response = OpenAIProvider("test-key").generate([{"role": "user", "content": "hi"}])

        assert response.content == ""
