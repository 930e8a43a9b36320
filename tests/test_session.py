"""Tests for the StudySession state machine."""

import pytest

from lingoflash.models import Card, SessionState
from lingoflash.session import SessionError, StudySession


def _answer(session, text):
    assert session.submit(text)
    assert session.advance()


def test_requires_cards():
    with pytest.raises(SessionError):
        StudySession([])


def test_rejects_duplicate_ids():
    with pytest.raises(SessionError):
        StudySession([Card("1", "一", "one"), Card("1", "二", "two")])


def test_initial_state(cards):
    session = StudySession(cards)
    assert session.state == SessionState.ACTIVE
    assert session.queue == [0, 1, 2, 3]
    assert session.cursor == 0
    assert session.current_card.id == "A"
    assert session.revealed is False
    assert session.progress_percent == 0


def test_end_to_end_two_cards():
    cards = [Card("1", "你好", "Hello"), Card("2", "谢谢", "Thanks")]
    emitted = []
    session = StudySession(cards, on_finish=emitted.append)

    assert session.submit("Hi")
    assert session.revealed
    assert session.advance()
    assert session.current_card.id == "2"
    assert session.skip()
    assert session.state == SessionState.RETRY_PROMPT
    assert session.skipped_count() == 1

    assert session.retry_accept()
    assert session.state == SessionState.ACTIVE
    assert session.queue == [1]
    assert session.cursor == 0
    assert session.submit("Thank you")
    assert session.advance()

    assert session.state == SessionState.FINISHED
    assert len(emitted) == 1
    final = emitted[0]
    assert [(r.card_id, r.user_input, r.is_skipped) for r in final] == [
        ("1", "Hi", False),
        ("2", "Thank you", False),
    ]
    assert session.final_results == final


def test_retry_queue_keeps_original_order(cards):
    session = StudySession(cards)
    _answer(session, "apple")
    session.skip()
    _answer(session, "cherry")
    session.skip()
    assert session.state == SessionState.RETRY_PROMPT
    assert session.skipped_count() == 2

    session.retry_accept()
    assert session.queue == [1, 3]
    assert session.current_card.id == "B"
    _answer(session, "banana")
    assert session.current_card.id == "D"
    _answer(session, "grape")

    assert session.state == SessionState.FINISHED
    final = session.final_results
    assert [r.card_id for r in final] == ["A", "B", "C", "D"]
    assert [r.user_input for r in final] == ["apple", "banana", "cherry", "grape"]
    assert not any(r.is_skipped for r in final)


def test_no_retry_prompt_when_nothing_skipped(cards):
    session = StudySession(cards)
    seen = []
    for word in ["apple", "banana", "cherry", "grape"]:
        _answer(session, word)
        seen.append(session.state)
    assert SessionState.RETRY_PROMPT not in seen
    assert session.state == SessionState.FINISHED


def test_retry_decline_keeps_skips(cards):
    session = StudySession(cards)
    _answer(session, "apple")
    session.skip()
    _answer(session, "cherry")
    _answer(session, "grape")
    assert session.state == SessionState.RETRY_PROMPT
    assert session.retry_decline()
    assert session.state == SessionState.FINISHED
    final = session.final_results
    assert final[1].is_skipped is True
    assert final[1].user_input == ""


def test_several_retry_rounds(cards):
    session = StudySession(cards[:2])
    _answer(session, "apple")
    session.skip()
    session.retry_accept()
    session.skip()
    assert session.state == SessionState.RETRY_PROMPT
    session.retry_accept()
    _answer(session, "banana")
    assert session.state == SessionState.FINISHED
    assert session.round == 3
    assert [r.user_input for r in session.final_results] == ["apple", "banana"]


def test_retry_accept_with_nothing_skipped_finishes(cards):
    session = StudySession(cards[:1])
    session.submit("apple")
    session.state = SessionState.RETRY_PROMPT
    assert session.retry_accept()
    assert session.state == SessionState.FINISHED


def test_last_write_wins(cards):
    session = StudySession(cards)
    session.submit("aple")
    session.submit("apple")
    assert session.ledger.get("A").user_input == "apple"

    session.advance()
    session.previous()
    session.submit("an apple")
    session.advance()
    for word in ["banana", "cherry", "grape"]:
        _answer(session, word)
    assert session.final_results[0].user_input == "an apple"


def test_skip_again_after_going_back(cards):
    session = StudySession(cards)
    session.skip()
    assert session.advance() is False
    assert session.previous()
    assert session.current_card.id == "A"
    session.skip()
    assert len(session.ledger) == 1
    assert session.ledger.get("A").is_skipped is True
    assert session.skipped_count() == 1


def test_skip_keeps_draft_and_bookmark(cards):
    session = StudySession(cards)
    session.update_draft("app")
    session.toggle_bookmark()
    session.skip()
    r = session.ledger.get("A")
    assert r.is_skipped is True
    assert r.user_input == "app"
    assert r.is_bookmarked is True


def test_bookmark_survives_navigation(cards):
    session = StudySession(cards)
    session.toggle_bookmark()
    session.submit("apple")
    session.advance()
    assert session.scratch.bookmarked is False
    session.previous()
    assert session.scratch.bookmarked is True
    assert session.scratch.text == "apple"
    assert session.ledger.get("A").is_bookmarked is True


def test_bookmark_persists_before_any_answer(cards):
    session = StudySession(cards)
    assert session.toggle_bookmark()
    r = session.ledger.get("A")
    assert r.is_bookmarked is True
    assert r.is_skipped is False
    assert r.user_input == ""
    assert session.skipped_count() == 0


def test_bookmark_keeps_skip_flag(cards):
    session = StudySession(cards)
    session.skip()
    session.previous()
    session.toggle_bookmark()
    r = session.ledger.get("A")
    assert r.is_skipped is True
    assert r.is_bookmarked is True
    session.toggle_bookmark()
    assert session.ledger.get("A").is_bookmarked is False
    assert session.ledger.get("A").is_skipped is True


def test_submit_rejects_blank_text(cards):
    session = StudySession(cards)
    assert session.submit("") is False
    assert session.submit("   ") is False
    assert session.revealed is False
    assert len(session.ledger) == 0


def test_advance_requires_reveal(cards):
    session = StudySession(cards)
    assert session.advance() is False
    assert session.cursor == 0


def test_previous_at_first_card_is_noop(cards):
    session = StudySession(cards)
    assert session.previous() is False
    assert session.cursor == 0
    assert session.state == SessionState.ACTIVE


def test_previous_hides_revealed_card(cards):
    session = StudySession(cards)
    _answer(session, "apple")
    session.submit("banana")
    assert session.revealed
    session.previous()
    assert session.revealed is False
    assert session.current_card.id == "A"


def test_progress_percent(cards):
    session = StudySession(cards)
    _answer(session, "apple")
    assert session.progress_percent == 25.0
    session.skip()
    assert session.progress_percent == 50.0


def test_actions_after_finish_are_rejected(cards):
    session = StudySession(cards[:1])
    _answer(session, "apple")
    assert session.state == SessionState.FINISHED
    assert session.current_card is None
    assert session.submit("again") is False
    assert session.skip() is False
    assert session.previous() is False
    assert session.toggle_bookmark() is False
    assert session.retry_accept() is False
    assert session.retry_decline() is False
    assert session.progress_percent == 100.0


def test_card_actions_rejected_in_retry_prompt(cards):
    session = StudySession(cards[:1])
    session.skip()
    assert session.state == SessionState.RETRY_PROMPT
    assert session.submit("apple") is False
    assert session.skip() is False
    assert session.previous() is False
    assert session.state == SessionState.RETRY_PROMPT


def test_retry_actions_rejected_while_active(cards):
    session = StudySession(cards)
    assert session.retry_accept() is False
    assert session.retry_decline() is False
    assert session.state == SessionState.ACTIVE


def test_final_results_cover_every_card(cards):
    session = StudySession(cards)
    for _ in cards:
        session.skip()
    session.retry_decline()
    final = session.final_results
    assert len(final) == len(cards)
    assert [r.card_id for r in final] == [c.id for c in cards]
    assert all(r.is_skipped for r in final)
