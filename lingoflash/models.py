from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SessionState(str, Enum):
    ACTIVE = "active"
    RETRY_PROMPT = "retry_prompt"
    FINISHED = "finished"


class ErrorType(str, Enum):
    CORRECT = "正确/完美"
    COMPLETELY_INCORRECT = "完全错误"
    EXPRESSION_ISSUE = "表达不当"
    VOCABULARY_ISSUE = "词汇不当"
    SPELLING_ISSUE = "拼写错误"
    INCOMPLETE = "不够完整"
    OVER_EXPRESSED = "过度表达"
    PARTIALLY_CORRECT = "部分正确"


@dataclass(frozen=True)
class Card:
    id: str
    source: str
    target: str


@dataclass
class Result:
    card_id: str
    source: str
    target: str
    user_input: str = ""
    is_skipped: bool = False
    is_bookmarked: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "cardId": self.card_id,
            "source": self.source,
            "target": self.target,
            "userInput": self.user_input,
            "isSkipped": self.is_skipped,
            "isBookmarked": self.is_bookmarked,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Result":
        return Result(
            card_id=str(data["cardId"]),
            source=str(data.get("source", "")),
            target=str(data.get("target", "")),
            user_input=str(data.get("userInput", "")),
            is_skipped=bool(data.get("isSkipped", False)),
            is_bookmarked=bool(data.get("isBookmarked", False)),
        )


@dataclass(frozen=True)
class Scratch:
    """Unsubmitted edit buffer for the card under the cursor."""

    text: str = ""
    bookmarked: bool = False


@dataclass
class CardAnalysis:
    card_id: str
    status: str
    error_type: ErrorType
    feedback: str
    improved_version: str
    source: str = ""
    user_input: str = ""
    is_bookmarked: bool = False

    @property
    def passed(self) -> bool:
        return self.status == "Passed"


@dataclass
class AnalysisReport:
    overall_score: int
    total_cards: int
    accuracy_rate: float
    difficulty_level: str
    error_distribution: list[dict[str, Any]] = field(default_factory=list)
    common_issues: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    positive_feedback: str = ""
    card_analyses: list[CardAnalysis] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "overallScore": self.overall_score,
            "totalCards": self.total_cards,
            "accuracyRate": self.accuracy_rate,
            "difficultyLevel": self.difficulty_level,
            "errorDistribution": self.error_distribution,
            "commonIssues": self.common_issues,
            "suggestions": self.suggestions,
            "positiveFeedback": self.positive_feedback,
            "cardAnalyses": [
                {
                    "cardId": a.card_id,
                    "status": a.status,
                    "errorType": a.error_type.value,
                    "feedback": a.feedback,
                    "improvedVersion": a.improved_version,
                    "source": a.source,
                    "userInput": a.user_input,
                    "isBookmarked": a.is_bookmarked,
                }
                for a in self.card_analyses
            ],
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "AnalysisReport":
        analyses = []
        for item in data.get("cardAnalyses") or []:
            if not isinstance(item, dict) or not item.get("cardId"):
                continue
            status = "Passed" if item.get("status") == "Passed" else "Not Passed"
            analyses.append(
                CardAnalysis(
                    card_id=str(item["cardId"]),
                    status=status,
                    error_type=coerce_error_type(item.get("errorType")),
                    feedback=str(item.get("feedback") or "").strip(),
                    improved_version=str(item.get("improvedVersion") or "").strip(),
                    source=str(item.get("source") or ""),
                    user_input=str(item.get("userInput") or ""),
                    is_bookmarked=bool(item.get("isBookmarked", False)),
                )
            )

        distribution = []
        for row in data.get("errorDistribution") or []:
            if isinstance(row, dict) and row.get("type"):
                distribution.append({"type": str(row["type"]), "count": int(row.get("count") or 0)})

        difficulty = str(data.get("difficultyLevel") or "Intermediate")
        if difficulty not in DIFFICULTY_LEVELS:
            difficulty = "Intermediate"

        return AnalysisReport(
            overall_score=int(_clamp(float(data.get("overallScore") or 0), 0, 100)),
            total_cards=int(data.get("totalCards") or len(analyses)),
            accuracy_rate=_clamp(float(data.get("accuracyRate") or 0), 0, 100),
            difficulty_level=difficulty,
            error_distribution=distribution,
            common_issues=[str(x) for x in data.get("commonIssues") or []],
            suggestions=[str(x) for x in data.get("suggestions") or []],
            positive_feedback=str(data.get("positiveFeedback") or "").strip(),
            card_analyses=analyses,
        )


DIFFICULTY_LEVELS = ("Beginner", "Intermediate", "Advanced")


def coerce_error_type(value: Any) -> ErrorType:
    try:
        return ErrorType(str(value).strip())
    except ValueError:
        return ErrorType.PARTIALLY_CORRECT


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))
