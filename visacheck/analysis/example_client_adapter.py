"""Offline analysis client.

Answers every request with a deterministic clean verdict built from the
checkpoint list in the system prompt. No network calls. Useful for local
development and tests, and as a template for new provider adapters.
"""

import json
import re

from visacheck.analysis.client_base import BaseAnalysisClient

_CHECKPOINT_BLOCK_RE = re.compile(r"against these checkpoints:\n\n(?P<block>.*?)\n\n", re.DOTALL)
_CHECKPOINT_LINE_RE = re.compile(r"^\d+\. (?P<name>[^:\n]+):", re.MULTILINE)


class ExampleClientAdapter(BaseAnalysisClient):
    """Example adapter that returns a fixed, valid analysis JSON."""

    DEFAULT_SCORE = 40

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        max_tokens: int,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        _ = model, temperature, max_tokens, user_prompt
        block = _CHECKPOINT_BLOCK_RE.search(system_prompt)
        text = block.group("block") if block else ""
        names = [m.group("name").strip() for m in _CHECKPOINT_LINE_RE.finditer(text)]
        checkpoints = [
            {
                "checkpoint": name,
                "status": "not_met",
                "evidence": "",
                "feedback": "No specific evidence was found for this checkpoint.",
                "score": 0,
            }
            for name in names
        ] or [{"checkpoint": "General", "status": "not_applicable"}]
        return json.dumps(
            {
                "isMalicious": False,
                "score": self.DEFAULT_SCORE,
                "summary": "Offline example analysis. No model was consulted.",
                "checkpoints": checkpoints,
                "strengths": [],
                "weaknesses": ["Claims are not backed by concrete evidence."],
                "suggestions": ["Provide verifiable documents for every checkpoint."],
            }
        )
