"""
Unit Tests for the Priority Classifier
"""
import asyncio
import json

import pytest

from app.core.exceptions import AIResponseParseError
from app.models.suggestion import SuggestionPriority
from app.services.priority_classifier import (
    NOT_CONFIGURED_REASON,
    UNAVAILABLE_REASON,
    DEFAULT_REASON,
    PriorityClassifier,
    parse_priority_response,
)

from mocks.mock_claude import MockClaudeClient


class TestParsePriorityResponse:

    def test_plain_json(self):
        result = parse_priority_response('{"priority": "urgent", "reason": "Fall hazard"}')

        assert result.priority is SuggestionPriority.URGENT
        assert result.reason == 'Fall hazard'
        assert result.was_classified is True

    def test_code_fenced_json(self):
        text = '```json\n{"priority": "low", "reason": "Cosmetic"}\n```'

        assert parse_priority_response(text).priority is SuggestionPriority.LOW

    @pytest.mark.parametrize('text', [
        '{"priority": "low", "reason": "Cosmetic"}\n```',
        '```JSON {"priority": "low", "reason": "Cosmetic"} ```',
        '{"priority": "low", ```json "reason": "Cosmetic"}',
    ])
    def test_stray_fences_anywhere(self, text):
        assert parse_priority_response(text).priority is SuggestionPriority.LOW

    def test_priority_is_case_insensitive(self):
        assert parse_priority_response('{"priority": "HIGH"}').priority is SuggestionPriority.HIGH

    def test_missing_reason_gets_default(self):
        assert parse_priority_response('{"priority": "medium"}').reason == DEFAULT_REASON

    @pytest.mark.parametrize('text', [
        'not json at all',
        '["urgent"]',
        '{"priority": "critical"}',
        '{"reason": "no priority"}',
        '',
    ])
    def test_unusable_responses_raise(self, text):
        with pytest.raises(AIResponseParseError):
            parse_priority_response(text)


class TestPriorityClassifier:

    async def test_not_configured_falls_back(self):
        classifier = PriorityClassifier(client=None)

        result = await classifier.classify('Title', 'Content', 'academic')

        assert result.priority is SuggestionPriority.MEDIUM
        assert result.reason == NOT_CONFIGURED_REASON
        assert result.was_classified is False

    async def test_uses_model_verdict(self):
        client = MockClaudeClient(priority='urgent', reason='Broken railing')
        classifier = PriorityClassifier(client=client, timeout_seconds=2)

        result = await classifier.classify('Sira ang hagdan', 'Railing is loose', 'general')

        assert result.priority is SuggestionPriority.URGENT
        assert result.reason == 'Broken railing'
        assert result.was_classified is True
        assert client.call_count == 1
        assert 'Sira ang hagdan' in client.last_prompt
        assert 'Category: general' in client.last_prompt

    async def test_client_error_falls_back(self):
        client = MockClaudeClient()
        client.fail_with(ConnectionError('network down'))
        classifier = PriorityClassifier(client=client, timeout_seconds=2)

        result = await classifier.classify('Title', 'Content', 'academic')

        assert result.priority is SuggestionPriority.MEDIUM
        assert result.reason == UNAVAILABLE_REASON
        assert result.was_classified is False

    async def test_invalid_answer_falls_back(self):
        client = MockClaudeClient()
        client.set_response('paint', json.dumps({'priority': 'whenever'}))
        classifier = PriorityClassifier(client=client, timeout_seconds=2)

        result = await classifier.classify('Paint the walls', 'Blue please', 'general')

        assert result.was_classified is False
        assert result.priority is SuggestionPriority.MEDIUM

    async def test_timeout_falls_back(self):
        client = MockClaudeClient()
        client.delay = 1
        classifier = PriorityClassifier(client=client, timeout_seconds=0.05)

        result = await classifier.classify('Title', 'Content', 'academic')

        assert result.was_classified is False
        assert result.reason == UNAVAILABLE_REASON
