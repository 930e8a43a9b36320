from __future__ import annotations

from pathlib import Path
from typing import Callable
import argparse
import logging
import sys

from .ai_client import ReportClient
from .config import Settings, load_settings
from .generator import build_review_deck, save_report_markdown
from .importer import CardImportError, demo_cards, load_cards
from .models import AnalysisReport, Result, SessionState
from .session import SessionError, StudySession
from .storage import load_results, save_report, save_results

logger = logging.getLogger(__name__)

HELP = "Type your answer and press enter.  :s skip  :p previous  :b bookmark  :q quit"
NEXT_HELP = "[enter] next card  :b bookmark  :p previous  (or type to re-answer)"


def _show_card(session: StudySession, write: Callable[[str], None]) -> None:
    card = session.current_card
    star = " ★" if session.scratch.bookmarked else ""
    write("")
    write(
        f"Card {session.cursor + 1} of {len(session.queue)}"
        f"  ({round(session.progress_percent)}% complete){star}"
    )
    write(f"  {card.source}")
    if session.scratch.text:
        write(f"  (previous answer: {session.scratch.text}; press enter to keep it)")


def _show_answer(session: StudySession, write: Callable[[str], None]) -> None:
    card = session.current_card
    write(f"  Your answer:    {session.scratch.text}")
    write(f"  Correct answer: {card.target}")


def run_study(
    session: StudySession,
    read: Callable[[str], str] | None = None,
    write: Callable[[str], None] | None = None,
) -> bool:
    """Drive a session from line input. Returns False if the user quits early."""
    read = read or input
    write = write or print
    write(HELP)
    shown = None
    while session.state != SessionState.FINISHED:
        if session.state == SessionState.RETRY_PROMPT:
            write("")
            write(f"You skipped {session.skipped_count()} card(s).")
            try:
                line = read("Practice the skipped cards again? [y/n] ").strip().lower()
            except EOFError:
                return False
            if line in {"y", "yes"}:
                session.retry_accept()
                shown = None
            elif line in {"n", "no"}:
                session.retry_decline()
            elif line == ":q":
                return False
            else:
                write("Please answer y or n.")
            continue

        position = (session.round, session.cursor, session.revealed)
        if shown != position:
            if session.revealed:
                _show_answer(session, write)
            else:
                _show_card(session, write)
            shown = position

        try:
            line = read(NEXT_HELP + " > " if session.revealed else "> ")
        except EOFError:
            return False
        command = line.strip()

        if command == ":q":
            return False
        if command == ":s":
            session.skip()
        elif command == ":p":
            if not session.previous():
                write("Already at the first card.")
        elif command == ":b":
            session.toggle_bookmark()
            write("Bookmarked." if session.scratch.bookmarked else "Bookmark removed.")
        elif command == "" and not session.revealed and session.scratch.text:
            # keep the answer stored for a revisited card
            session.submit(session.scratch.text)
            shown = None
        elif command in {"", ":n"}:
            if not session.advance():
                write("Type an answer first, or :s to skip.")
        elif session.submit(line):
            shown = None
    return True


def generate_report(settings: Settings, results: list[Result]) -> AnalysisReport:
    client = ReportClient(settings)
    report = client.generate_study_summary(results)

    settings.output_dir.mkdir(parents=True, exist_ok=True)
    report_json = save_report(settings.output_dir / "report.json", report)
    report_md = save_report_markdown(
        settings.output_dir,
        report,
        bookmarks_only=settings.export.bookmarks_only_markdown,
    )
    logger.info("Saved report to %s and %s", report_json, report_md)
    if settings.export.anki_deck:
        deck = build_review_deck(settings.output_dir, report)
        if deck:
            logger.info("Saved review deck to %s", deck)
    return report


def _print_summary(report: AnalysisReport) -> None:
    print("")
    print(f"Overall score: {report.overall_score}/100   Accuracy: {report.accuracy_rate:g}%   Level: {report.difficulty_level}")
    if report.positive_feedback:
        print(report.positive_feedback)
    for issue in report.common_issues:
        print(f"- {issue}")


def _report_or_explain(settings: Settings, results: list[Result], results_path: Path) -> int:
    try:
        report = generate_report(settings, results)
    except Exception as e:
        logger.error("Failed to generate AI report: %s", e)
        print(f"Report generation failed. Results are kept in {results_path}; retry with: lingoflash report {results_path}")
        return 1
    _print_summary(report)
    return 0


def cmd_study(settings: Settings, args) -> int:
    try:
        cards = demo_cards() if args.demo else load_cards(Path(args.file))
    except CardImportError as e:
        logger.error("%s", e)
        return 1

    finished: list[list[Result]] = []
    try:
        session = StudySession(cards, on_finish=finished.append)
    except SessionError as e:
        logger.error("%s", e)
        return 1

    if not run_study(session) or not finished:
        print("\nSession abandoned; nothing saved.")
        return 130

    results = finished[0]
    results_path = save_results(settings.results_file, results)
    logger.info("Saved %d results to %s", len(results), results_path)
    if args.no_report:
        return 0
    return _report_or_explain(settings, results, results_path)


def cmd_report(settings: Settings, args) -> int:
    results_path = Path(args.results)
    try:
        results = load_results(results_path)
    except (OSError, ValueError, KeyError) as e:
        logger.error("Could not read results from %s: %s", results_path, e)
        return 1
    return _report_or_explain(settings, results, results_path)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="LingoFlash")
    parser.add_argument("--config", default="config.yaml")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="cmd", required=True)

    study = sub.add_parser("study", help="Study a term list card by card")
    study.add_argument("file", nargs="?")
    study.add_argument("--demo", action="store_true", help="Use the built-in demo cards")
    study.add_argument("--no-report", action="store_true", help="Skip the AI report")

    report = sub.add_parser("report", help="Generate the AI report for saved results")
    report.add_argument("results")

    args = parser.parse_args(argv)
    if args.cmd == "study" and not args.file and not args.demo:
        parser.error("study needs a FILE or --demo")

    settings = load_settings(args.config)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "study":
        return cmd_study(settings, args)
    return cmd_report(settings, args)


if __name__ == "__main__":
    sys.exit(main())
