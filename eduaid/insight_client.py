import re
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from groq import Groq

from .config import CONFIG

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r'```(?:json)?\s*', re.IGNORECASE)


@dataclass
class InsightResult:
    """Outcome of a remote model call: a parsed payload or a failure reason"""
    ok: bool
    payload: Any = None
    reason: Optional[str] = None

    @classmethod
    def success(cls, payload):
        return cls(ok=True, payload=payload)

    @classmethod
    def failure(cls, reason):
        return cls(ok=False, reason=reason)


def strip_code_fences(text):
    return _FENCE_PATTERN.sub('', text or '').strip()


def parse_json_response(text):
    """Parse model output that may be wrapped in markdown code fences"""
    return json.loads(strip_code_fences(text))


class GroqInsightClient:
    def __init__(self, api_key=None, model=None, timeout=None, client=None):
        self.model = model or CONFIG["groq_model"]
        self.timeout = timeout if timeout is not None else CONFIG["ai_timeout_seconds"]
        if client is not None:
            self.client = client
        elif api_key:
            self.client = Groq(api_key=api_key, timeout=self.timeout, max_retries=0)
        else:
            self.client = None

    @classmethod
    def from_config(cls):
        if not CONFIG["groq_api_key"]:
            logger.warning("GROQ_API_KEY not found. AI features will use fallback analysis.")
        return cls(api_key=CONFIG["groq_api_key"])

    @property
    def available(self):
        return self.client is not None

    def complete(self, prompt, temperature=None, max_tokens=None):
        """Raw completion text. Raises whatever the SDK raises."""
        if not self.client:
            raise RuntimeError("Groq client not initialized. Please check your API key.")

        response = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=CONFIG["ai_temperature"] if temperature is None else temperature,
            max_tokens=max_tokens or CONFIG["ai_max_tokens"],
            top_p=0.95,
            stream=False,
            timeout=self.timeout,
        )
        return response.choices[0].message.content or ""

    def request_json(self, prompt):
        """Call the model and parse its JSON answer. Never raises."""
        if not self.client:
            return InsightResult.failure("AI model not configured")

        try:
            text = self.complete(prompt)
        except Exception as e:
            logger.error(f"AI analysis error: {type(e).__name__}: {str(e)}")
            return InsightResult.failure(f"{type(e).__name__}: {str(e)}")

        if not text.strip():
            logger.error("Empty response from the AI service")
            return InsightResult.failure("empty response")

        logger.info(f"AI response received, length: {len(text)}")
        try:
            return InsightResult.success(parse_json_response(text))
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse AI response as JSON: {str(e)}")
            logger.debug(f"Response text: {text[:500]}")
            return InsightResult.failure(f"invalid JSON: {str(e)}")
