"""
Priority Classifier

Asks Claude to triage a suggestion into urgent / high / medium / low.
The classifier never fails a submission: when the model is not configured,
unreachable, slow, or answers with something unusable, the suggestion gets
medium priority and is flagged as not analyzed so staff review it by hand.
"""

import asyncio
import json
import re
from dataclasses import dataclass
from typing import Optional

from app.core.config import settings
from app.core.exceptions import AIResponseParseError
from app.core.logging_config import logger
from app.models.suggestion import SuggestionPriority
from app.utils.claude_client import ClaudeClient


NOT_CONFIGURED_REASON = "Default priority (AI not configured)"
UNAVAILABLE_REASON = (
    "AI services temporarily unavailable. Default priority assigned - admin will review manually."
)
DEFAULT_REASON = "AI-determined priority"
CODE_FENCE_PATTERN = re.compile(r"```(?:json)?", re.IGNORECASE)


CLASSIFIER_SYSTEM_PROMPT = """You are a SAFETY-FIRST triage assistant for campus student suggestions.
Students write in English, Tagalog, or Bisaya.

PRIORITY LEVELS:

URGENT - immediate action required (safety, security, health, harassment):
- "Broken railing on stairs" -> urgent (fall hazard)
- "Sira ang hagdan" (broken stairs) -> urgent
- "Guba ang railing" (broken railing) -> urgent
- "Exposed electrical wires in classroom" -> urgent
- "Someone is being bullied/harassed" -> urgent
- "Broken door lock in CR" -> urgent (security)
- "No lights in parking area at night" -> urgent (security)
- "Mold in classroom causing sickness" -> urgent

HIGH - affects many students or is time-sensitive:
- "Library closes too early during exam week" -> high
- "All computers in lab are broken" -> high
- "No water in entire building" -> high
- "Enrollment system is down" -> high
- "Grades not posted before deadline" -> high

MEDIUM - general quality-of-life improvements:
- "Add more electric fans" -> medium
- "WiFi is slow" -> medium
- "Water dispenser needed" -> medium
- "Better food options in canteen" -> medium

LOW - cosmetic or nice to have:
- "Add plants for decoration" -> low
- "Paint the walls a different color" -> low
- "Add motivational posters" -> low

RULES:
1. Any broken infrastructure (railings, stairs, floors, ceilings, doors, windows) is urgent.
2. Any hazard that could cause injury is urgent.
3. Any harassment, bullying, abuse or threat is urgent.
4. When unsure between two levels, pick the higher one.
5. "Sira", "guba", "broken", "damaged" plus infrastructure is urgent.

Respond ONLY with JSON:
{"priority":"medium","reason":"Brief explanation of what the student wants and why this priority."}"""


@dataclass
class PriorityResult:
    priority: SuggestionPriority
    reason: str
    was_classified: bool


def fallback_result(reason: str = UNAVAILABLE_REASON) -> PriorityResult:
    return PriorityResult(priority=SuggestionPriority.MEDIUM, reason=reason, was_classified=False)


def parse_priority_response(text: str) -> PriorityResult:
    """
    Parse the model's JSON answer.

    Markdown code fences are stripped and the priority is matched
    case-insensitively.

    Raises:
        AIResponseParseError: not JSON, or priority outside the allowed set
    """
    content = (text or "").strip()

    content = CODE_FENCE_PATTERN.sub("", content).strip()

    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as e:
        raise AIResponseParseError(f"Response is not JSON: {e}")

    if not isinstance(parsed, dict):
        raise AIResponseParseError("Response is not a JSON object")

    raw_priority = str(parsed.get("priority") or "").strip().lower()
    try:
        priority = SuggestionPriority(raw_priority)
    except ValueError:
        raise AIResponseParseError(f"Invalid priority value: {raw_priority!r}")

    reason = str(parsed.get("reason") or "").strip() or DEFAULT_REASON
    return PriorityResult(priority=priority, reason=reason, was_classified=True)


class PriorityClassifier:
    """Classification adapter over the Claude client"""

    def __init__(self, client: Optional[ClaudeClient] = None, timeout_seconds: Optional[float] = None):
        self.client = client
        self.timeout_seconds = timeout_seconds or settings.CLASSIFIER_TIMEOUT_SECONDS

    @classmethod
    def from_settings(cls) -> "PriorityClassifier":
        if not settings.ANTHROPIC_API_KEY:
            logger.warning("[Classifier] ANTHROPIC_API_KEY not set - every suggestion gets default priority")
            return cls(client=None)
        return cls(client=ClaudeClient())

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    @staticmethod
    def build_prompt(title: str, content: str, category: str) -> str:
        return (
            "ANALYZE THIS SUGGESTION:\n"
            f"Category: {category}\n"
            f"Title: {title}\n"
            f"Description: {content}"
        )

    async def classify(self, title: str, content: str, category: str) -> PriorityResult:
        """Never raises; failures resolve to medium priority with was_classified=False"""
        if not self.is_configured:
            return fallback_result(NOT_CONFIGURED_REASON)

        try:
            response = await asyncio.wait_for(
                self.client.generate(
                    prompt=self.build_prompt(title, content, category),
                    system_prompt=CLASSIFIER_SYSTEM_PROMPT,
                ),
                timeout=self.timeout_seconds,
            )
            result = parse_priority_response(response.get("content", ""))
            logger.log_collaborator_event(
                "classifier", f"'{title[:50]}' -> {result.priority.value}"
            )
            return result

        except asyncio.TimeoutError:
            logger.log_collaborator_event(
                "classifier", f"timed out after {self.timeout_seconds}s", degraded=True
            )
        except AIResponseParseError as e:
            logger.log_collaborator_event("classifier", f"unusable response: {e.message}", degraded=True)
        except Exception as e:
            logger.log_collaborator_event(
                "classifier", f"{type(e).__name__}: {e}", degraded=True
            )

        return fallback_result()
