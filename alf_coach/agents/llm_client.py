"""LLM client for structured extraction, Anthropic Claude API."""
import json
import os
import logging
import re
from typing import List, Dict, Any, Optional

from ..errors import LLMError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
MODEL_ENV_VAR = "ALF_COACH_MODEL"


class LLMClient:
    """Client for LLM API calls (Anthropic Claude)."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        max_tokens: int = 4096,
    ):
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY", "")
        self.model = model or os.environ.get(MODEL_ENV_VAR, DEFAULT_MODEL)
        self.base_url = base_url
        self.max_tokens = max_tokens
        self._client = None

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise LLMError(
                    "ANTHROPIC_API_KEY is not set. "
                    "Run: export ANTHROPIC_API_KEY='sk-ant-...'"
                )
            from anthropic import Anthropic
            kwargs: Dict[str, Any] = {"api_key": self.api_key}
            if self.base_url:
                kwargs["base_url"] = self.base_url
            self._client = Anthropic(**kwargs)
        return self._client

    def extract(self, messages: List[Dict[str, str]], temperature: float = 0.0) -> Dict[str, Any]:
        """Send an extraction request and parse the JSON response.

        Raises LLMError on failure instead of returning empty results silently.

        Parameters
        ----------
        messages : list[dict]
            Chat messages: [{"role": "system"|"user"|"assistant", "content": "..."}]
            The system message is passed as Claude's system parameter.
        temperature : float
            Sampling temperature.
        """
        try:
            system_text = ""
            conversation = []
            for msg in messages:
                if msg["role"] == "system":
                    system_text = msg["content"]
                else:
                    conversation.append(msg)

            system_text += (
                "\n\nReturn JSON only. Do not wrap it in markdown fences and do "
                "not add commentary. The first character must be {."
            )

            kwargs: Dict[str, Any] = {
                "model": self.model,
                "max_tokens": self.max_tokens,
                "temperature": temperature,
                "messages": conversation,
                "system": system_text,
            }

            response = self.client.messages.create(**kwargs)
            content = response.content[0].text
            stop_reason = getattr(response, "stop_reason", "unknown")
        except LLMError:
            raise
        except Exception as e:
            raise LLMError(f"LLM API call failed: {e}") from e

        content = _strip_fences(content)
        try:
            return json.loads(content)
        except json.JSONDecodeError:
            if stop_reason == "max_tokens":
                logger.warning(
                    "LLM response truncated at max_tokens. "
                    "Response length: %d chars. Attempting JSON repair.",
                    len(content),
                )
                repaired = self._repair_truncated_json(content)
                if repaired is not None:
                    return repaired
            return self._try_extract_json(content)

    @staticmethod
    def _repair_truncated_json(text: str) -> Optional[Dict[str, Any]]:
        """Attempt to repair JSON that was truncated at max_tokens.

        Tracks string boundaries (quotes and escapes) to find clean
        structural truncation points, then closes the open brackets.
        The most recent positions are tried first.
        """
        start = text.find("{")
        if start < 0:
            return None

        candidate = text[start:]

        in_string = False
        escape = False
        brace_depth = 0
        bracket_depth = 0
        # (position, char, brace_depth_after, bracket_depth_after)
        trim_points: list = []

        for i, ch in enumerate(candidate):
            if escape:
                escape = False
                continue
            if ch == '\\' and in_string:
                escape = True
                continue
            if ch == '"':
                in_string = not in_string
                continue
            if in_string:
                continue

            if ch == '{':
                brace_depth += 1
            elif ch == '}':
                brace_depth -= 1
                trim_points.append((i, ch, brace_depth, bracket_depth))
            elif ch == '[':
                bracket_depth += 1
            elif ch == ']':
                bracket_depth -= 1
                trim_points.append((i, ch, brace_depth, bracket_depth))
            elif ch == ',':
                trim_points.append((i, ch, brace_depth, bracket_depth))

        for pos, ch, bd, bkd in reversed(trim_points[-30:]):
            if bd < 0 or bkd < 0:
                continue
            sub = candidate[:pos] if ch == ',' else candidate[:pos + 1]
            suffix = ']' * bkd + '}' * bd
            try:
                result = json.loads(sub + suffix)
                logger.warning(
                    "Repaired truncated JSON (trim at pos %d '%s', added '%s')",
                    pos, ch, suffix,
                )
                return result
            except json.JSONDecodeError:
                continue

        return None

    def _try_extract_json(self, text: str) -> Dict[str, Any]:
        """Pull a JSON object out of text that carries extra formatting."""
        patterns = [r'```json\s*(.*?)\s*```', r'```\s*(.*?)\s*```', r'\{.*\}']
        for pattern in patterns:
            match = re.search(pattern, text, re.DOTALL)
            if match:
                try:
                    return json.loads(match.group(1) if '```' in pattern else match.group(0))
                except json.JSONDecodeError:
                    continue

        repaired = self._repair_truncated_json(text)
        if repaired is not None:
            return repaired

        raise LLMError(f"Could not extract JSON from LLM response. First 200 chars: {text[:200]}")


def _strip_fences(content: str) -> str:
    stripped = content.strip()
    if stripped.startswith("```"):
        first_newline = stripped.find("\n")
        if first_newline > 0:
            stripped = stripped[first_newline + 1:]
        if stripped.rstrip().endswith("```"):
            stripped = stripped.rstrip()[:-3].rstrip()
    return stripped
