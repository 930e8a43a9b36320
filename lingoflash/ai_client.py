from __future__ import annotations

import json
import logging

from openai import OpenAI

from .config import Settings
from .models import DIFFICULTY_LEVELS, AnalysisReport, ErrorType, Result

logger = logging.getLogger(__name__)


REPORT_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "overallScore": {"type": "integer", "description": "0-100 score"},
        "totalCards": {"type": "integer"},
        "accuracyRate": {"type": "number", "description": "Percentage 0-100"},
        "difficultyLevel": {"type": "string", "enum": list(DIFFICULTY_LEVELS)},
        "errorDistribution": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "type": {"type": "string"},
                    "count": {"type": "integer"},
                },
                "required": ["type", "count"],
            },
        },
        "commonIssues": {"type": "array", "items": {"type": "string"}},
        "suggestions": {"type": "array", "items": {"type": "string"}},
        "positiveFeedback": {"type": "string"},
        "cardAnalyses": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "cardId": {"type": "string"},
                    "status": {"type": "string", "enum": ["Passed", "Not Passed"]},
                    "errorType": {"type": "string", "enum": [e.value for e in ErrorType]},
                    "feedback": {"type": "string"},
                    "improvedVersion": {"type": "string"},
                },
                "required": ["cardId", "status", "errorType", "feedback", "improvedVersion"],
            },
        },
    },
    "required": [
        "overallScore",
        "totalCards",
        "accuracyRate",
        "difficultyLevel",
        "errorDistribution",
        "commonIssues",
        "suggestions",
        "positiveFeedback",
        "cardAnalyses",
    ],
}


class ReportClient:
    def __init__(self, settings: Settings, client=None) -> None:
        if client is None:
            if not settings.openai_api_key:
                raise ValueError("OPENAI_API_KEY is missing")
            kwargs = {"api_key": settings.openai_api_key}
            if settings.openai_base_url:
                kwargs["base_url"] = settings.openai_base_url
            client = OpenAI(**kwargs)
        self.client = client
        self.model = settings.openai_model
        self.settings = settings

    @staticmethod
    def _unwrap(data: dict) -> dict:
        if not isinstance(data, dict):
            return {}
        # Handle wrapped payloads from some models/SDK paths.
        if "result" in data and isinstance(data["result"], dict):
            data = data["result"]
        if "report" in data and isinstance(data["report"], dict):
            data = data["report"]
        if "data" in data and isinstance(data["data"], dict):
            data = data["data"]
        return data

    def _json_response(self, system_prompt: str, user_payload: dict, schema_name: str, schema: dict, temperature: float) -> dict:
        content = json.dumps(user_payload, ensure_ascii=False)
        def _is_temp_unsupported(err: Exception) -> bool:
            msg = str(err).lower()
            return "temperature" in msg and "unsupported" in msg

        def _create(kwargs: dict):
            try:
                return self.client.responses.create(**kwargs)
            except Exception as e:
                if "temperature" not in kwargs or not _is_temp_unsupported(e):
                    raise
                logger.debug("Model %s rejected temperature, retrying without it", self.model)
                kwargs.pop("temperature")
                return self.client.responses.create(**kwargs)

        if not hasattr(self.client, "responses"):
            raise RuntimeError(
                "Installed openai SDK is too old for strict schema mode. "
                "Run: pip install -U openai"
            )
        kwargs = {
            "model": self.model,
            "input": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": content},
            ],
            "temperature": temperature,
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": schema_name,
                    "schema": schema,
                    "strict": True,
                },
            },
        }
        try:
            response = _create(kwargs)
        except TypeError as e:
            if "text" not in str(e).lower() or "unexpected keyword argument" not in str(e).lower():
                raise
            kwargs.pop("text", None)
            kwargs["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": schema_name, "schema": schema},
            }
            response = _create(kwargs)
        text = response.output[0].content[0].text
        if not text:
            raise RuntimeError("No response from AI")

        return json.loads(text)

    def _system_prompt(self) -> str:
        native = self.settings.language.native_language
        target = self.settings.language.target_language
        categories = "\n".join(f"- {e.value}" for e in ErrorType)
        return f"""You are a professional {target} tutor for a native {native} speaker.
Analyze the student's flashcard translations and return a detailed JSON report.

For every card compare userAttempt with correctTarget:
- status is "Passed" when the meaning is right and the wording natural (small differences allowed), otherwise "Not Passed".
- errorType is the closest of:
{categories}
- A skipped card or an empty attempt is "完全错误" and "Not Passed".
- feedback explains the problem and how to improve, written in {native}.
- improvedVersion is the most natural {target} expression.

Return valid JSON only, following the schema."""

    def generate_study_summary(self, results: list[Result]) -> AnalysisReport:
        payload = {
            "cards": [
                {
                    "id": r.card_id,
                    "source": r.source,
                    "correctTarget": r.target,
                    "userAttempt": r.user_input,
                    "skipped": r.is_skipped,
                }
                for r in results
            ],
        }
        logger.info("Requesting study report for %d cards from %s", len(results), self.model)
        try:
            data = self._json_response(
                system_prompt=self._system_prompt(),
                user_payload=payload,
                schema_name="study_report",
                schema=REPORT_SCHEMA,
                temperature=self.settings.openai.temperature,
            )
        except Exception:
            logger.exception("Report generation failed")
            raise

        data = self._unwrap(data)
        if not data.get("totalCards"):
            data["totalCards"] = len(results)
        report = AnalysisReport.from_dict(data)
        return merge_results(report, results)


def merge_results(report: AnalysisReport, results: list[Result]) -> AnalysisReport:
    """Attach the original source text, answer and bookmark to each card analysis."""
    by_id = {r.card_id: r for r in results}
    order = {r.card_id: i for i, r in enumerate(results)}
    merged = []
    for analysis in report.card_analyses:
        original = by_id.get(analysis.card_id)
        if original is None:
            logger.warning("Dropping analysis for unknown card %s", analysis.card_id)
            continue
        analysis.source = original.source
        analysis.user_input = original.user_input
        analysis.is_bookmarked = original.is_bookmarked
        merged.append(analysis)
    merged.sort(key=lambda a: order[a.card_id])
    report.card_analyses = merged
    return report
