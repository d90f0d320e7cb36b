from dataclasses import dataclass, field
from typing import Any

MAX_SCORE = 85

CHECKPOINT_STATUSES = frozenset({"met", "partially_met", "not_met", "not_applicable"})

Score = int | float


@dataclass(frozen=True)
class Checkpoint:
    """Model verdict for one required or optional document."""

    checkpoint: str
    status: str  # one of CHECKPOINT_STATUSES
    evidence: str | None = None
    feedback: str | None = None
    score: Score | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"checkpoint": self.checkpoint, "status": self.status}
        if self.evidence is not None:
            data["evidence"] = self.evidence
        if self.feedback is not None:
            data["feedback"] = self.feedback
        if self.score is not None:
            data["score"] = self.score
        return data


@dataclass(frozen=True)
class EvaluationResult:
    """Validated eligibility verdict.

    A malicious verdict carries ``malicious_reason`` and no checkpoints; a
    clean verdict carries at least one checkpoint.
    """

    is_malicious: bool
    score: Score
    summary: str
    malicious_reason: str | None = None
    checkpoints: list[Checkpoint] = field(default_factory=list)
    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    raw_analysis: str | None = None

    @classmethod
    def failure(cls, message: str) -> "EvaluationResult":
        """Zero-score placeholder stored on evaluations that could not be analyzed."""
        return cls(is_malicious=False, score=0, summary=f"Analysis failed: {message}")

    def to_dict(self, include_raw: bool = True) -> dict[str, Any]:
        """Serialize using the public camelCase field names."""
        data: dict[str, Any] = {
            "isMalicious": self.is_malicious,
            "score": self.score,
            "summary": self.summary,
            "checkpoints": [c.to_dict() for c in self.checkpoints],
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "suggestions": list(self.suggestions),
        }
        if self.malicious_reason is not None:
            data["maliciousReason"] = self.malicious_reason
        if include_raw and self.raw_analysis is not None:
            data["rawAnalysis"] = self.raw_analysis
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EvaluationResult":
        """Rebuild a stored result. Input is trusted (written by to_dict)."""
        return cls(
            is_malicious=bool(data.get("isMalicious", False)),
            score=data.get("score", 0),
            summary=data.get("summary", ""),
            malicious_reason=data.get("maliciousReason"),
            checkpoints=[
                Checkpoint(
                    checkpoint=c["checkpoint"],
                    status=c["status"],
                    evidence=c.get("evidence"),
                    feedback=c.get("feedback"),
                    score=c.get("score"),
                )
                for c in data.get("checkpoints") or []
            ],
            strengths=list(data.get("strengths") or []),
            weaknesses=list(data.get("weaknesses") or []),
            suggestions=list(data.get("suggestions") or []),
            raw_analysis=data.get("rawAnalysis"),
        )


@dataclass(frozen=True)
class PromptPair:
    """System instructions plus the marker-wrapped document for the user role."""

    system_prompt: str
    user_prompt: str
