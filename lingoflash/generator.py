from __future__ import annotations

from datetime import datetime
from pathlib import Path
import random

import genanki

from .models import AnalysisReport


def render_report_markdown(report: AnalysisReport, bookmarks_only: bool = False) -> str:
    lines = [
        "# LingoFlash Study Report",
        "",
        f"- Overall score: {report.overall_score} / 100",
        f"- Accuracy rate: {report.accuracy_rate:g}%",
        f"- Difficulty: {report.difficulty_level}",
        f"- Cards: {report.total_cards}",
        "",
    ]
    if report.error_distribution:
        lines += ["## Error distribution", ""]
        for row in report.error_distribution:
            lines.append(f"- {row['type']}: {row['count']}")
        lines.append("")
    if report.common_issues:
        lines += ["## Common issues", ""]
        lines += [f"- {x}" for x in report.common_issues]
        lines.append("")
    if report.suggestions:
        lines += ["## Suggestions", ""]
        lines += [f"- {x}" for x in report.suggestions]
        lines.append("")
    if report.positive_feedback:
        lines += ["## What went well", "", report.positive_feedback, ""]

    analyses = report.card_analyses
    if bookmarks_only:
        analyses = [a for a in analyses if a.is_bookmarked]
    lines += ["## Cards", ""]
    if not analyses:
        lines.append("_No cards to show._")
    for a in analyses:
        star = " ★" if a.is_bookmarked else ""
        lines.append(f"### {a.source}{star}")
        lines.append("")
        lines.append(f"- Status: {a.status} ({a.error_type.value})")
        lines.append(f"- Your answer: {a.user_input or '(skipped)'}")
        lines.append(f"- Improved: {a.improved_version}")
        if a.feedback:
            lines.append(f"- Feedback: {a.feedback}")
        lines.append("")
    return "\n".join(lines).strip() + "\n"


def save_report_markdown(output_dir: Path, report: AnalysisReport, bookmarks_only: bool = False) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y-%m-%d")
    out = output_dir / f"report-{stamp}.md"
    out.write_text(render_report_markdown(report, bookmarks_only), encoding="utf-8")
    return out


def build_review_deck(output_dir: Path, report: AnalysisReport) -> Path | None:
    review = [a for a in report.card_analyses if a.is_bookmarked or not a.passed]
    if not review:
        return None

    output_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y-%m-%d")

    model_id = random.randint(10**9, 2 * 10**9 - 1)
    deck_id = random.randint(10**9, 2 * 10**9 - 1)

    model = genanki.Model(
        model_id,
        "LingoFlashReviewModel",
        fields=[{"name": "Front"}, {"name": "Back"}, {"name": "Feedback"}],
        templates=[
            {
                "name": "Card 1",
                "qfmt": "{{Front}}",
                "afmt": "{{FrontSide}}<hr id=answer>{{Back}}<br><small>{{Feedback}}</small>",
            }
        ],
    )

    deck = genanki.Deck(deck_id, f"LingoFlash review {stamp}")
    for a in review:
        front = a.source.strip()
        back = a.improved_version.strip()
        if front and back:
            deck.add_note(genanki.Note(model=model, fields=[front, back, a.feedback]))

    out = output_dir / f"review-{stamp}.apkg"
    genanki.Package(deck).write_to_file(str(out))
    return out
