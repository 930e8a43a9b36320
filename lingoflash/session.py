from __future__ import annotations

import logging
from typing import Callable

from .ledger import ResultLedger
from .models import Card, Result, Scratch, SessionState

logger = logging.getLogger(__name__)


class SessionError(ValueError):
    pass


class StudySession:
    """Card-by-card quiz over a fixed card list.

    The session walks a queue of card positions. Submitting records an answer and
    reveals the card; advancing moves on. Skipped cards can be retried in a later
    round restricted to them. When the queue is exhausted and nothing is left to
    retry (or the retry is declined) the session finishes and hands the complete,
    original-order result list to ``on_finish``.

    Actions that are not allowed in the current state return False and change
    nothing.
    """

    def __init__(
        self,
        cards: list[Card],
        on_finish: Callable[[list[Result]], None] | None = None,
    ) -> None:
        if not cards:
            raise SessionError("Cannot start a study session without cards")
        ids = [c.id for c in cards]
        if len(set(ids)) != len(ids):
            raise SessionError("Card ids must be unique within a session")

        self.cards = list(cards)
        self.ledger = ResultLedger()
        self.on_finish = on_finish
        self.state = SessionState.ACTIVE
        self.queue: list[int] = list(range(len(self.cards)))
        self.cursor = 0
        self.revealed = False
        self.round = 1
        self.final_results: list[Result] | None = None
        self.scratch = self.load_scratch(self.cards[0].id)

    @property
    def current_card(self) -> Card | None:
        if self.state != SessionState.ACTIVE:
            return None
        if not (0 <= self.cursor < len(self.queue)):
            return None
        return self.cards[self.queue[self.cursor]]

    @property
    def progress_percent(self) -> float:
        if self.state != SessionState.ACTIVE:
            return 100.0
        return self.cursor / len(self.queue) * 100

    def skipped_count(self) -> int:
        return self.ledger.count_skipped()

    def load_scratch(self, card_id: str) -> Scratch:
        existing = self.ledger.get(card_id)
        if existing is None:
            return Scratch()
        return Scratch(text=existing.user_input, bookmarked=existing.is_bookmarked)

    def _reject(self, action: str, reason: str) -> bool:
        logger.debug("Rejected %s in state %s: %s", action, self.state.value, reason)
        return False

    def update_draft(self, text: str) -> bool:
        """Replace the unsubmitted answer for the current card.

        For front-ends that edit an answer before submitting it; the terminal
        loop submits each typed line directly. Skip records whatever draft is held.
        """
        if self.current_card is None:
            return self._reject("update_draft", "no current card")
        self.scratch = Scratch(text=text, bookmarked=self.scratch.bookmarked)
        return True

    def submit(self, text: str) -> bool:
        card = self.current_card
        if card is None:
            return self._reject("submit", "no current card")
        if not text or not text.strip():
            return self._reject("submit", "empty answer")
        self.scratch = Scratch(text=text, bookmarked=self.scratch.bookmarked)
        self.ledger.record(card, text, skipped=False, bookmarked=self.scratch.bookmarked)
        self.revealed = True
        return True

    def advance(self) -> bool:
        if self.current_card is None:
            return self._reject("advance", "no current card")
        if not self.revealed:
            return self._reject("advance", "card not revealed")
        self._step_forward()
        return True

    def skip(self) -> bool:
        card = self.current_card
        if card is None:
            return self._reject("skip", "no current card")
        self.ledger.record(
            card,
            self.scratch.text,
            skipped=True,
            bookmarked=self.scratch.bookmarked,
        )
        self._step_forward()
        return True

    def previous(self) -> bool:
        if self.current_card is None:
            return self._reject("previous", "no current card")
        if self.cursor == 0:
            return self._reject("previous", "already at first card")
        self._move_to(self.cursor - 1)
        return True

    def toggle_bookmark(self) -> bool:
        card = self.current_card
        if card is None:
            return self._reject("toggle_bookmark", "no current card")
        flipped = not self.scratch.bookmarked
        self.scratch = Scratch(text=self.scratch.text, bookmarked=flipped)
        prior = self.ledger.get(card.id)
        if prior is None:
            self.ledger.record(card, "", skipped=False, bookmarked=flipped, answered=False)
        else:
            self.ledger.record(
                card,
                prior.user_input,
                skipped=prior.is_skipped,
                bookmarked=flipped,
                answered=self.ledger.is_answered(card.id),
            )
        return True

    def retry_accept(self) -> bool:
        if self.state != SessionState.RETRY_PROMPT:
            return self._reject("retry_accept", "no retry pending")
        positions = self.ledger.skipped_positions(self.cards)
        if not positions:
            self._finish()
            return True
        self.queue = positions
        self.round += 1
        self.state = SessionState.ACTIVE
        logger.info("Retry round %d over %d skipped cards", self.round, len(positions))
        self._move_to(0)
        return True

    def retry_decline(self) -> bool:
        if self.state != SessionState.RETRY_PROMPT:
            return self._reject("retry_decline", "no retry pending")
        self._finish()
        return True

    def _move_to(self, cursor: int) -> None:
        self.cursor = cursor
        self.revealed = False
        self.scratch = self.load_scratch(self.cards[self.queue[cursor]].id)

    def _step_forward(self) -> None:
        if self.cursor < len(self.queue) - 1:
            self._move_to(self.cursor + 1)
            return
        self.revealed = False
        if self.ledger.count_skipped() == 0:
            self._finish()
        else:
            self.state = SessionState.RETRY_PROMPT

    def _finish(self) -> None:
        self.state = SessionState.FINISHED
        self.revealed = False
        self.final_results = self.ledger.finalize(self.cards)
        logger.info(
            "Session finished after %d round(s): %d cards, %d skipped",
            self.round,
            len(self.final_results),
            sum(1 for r in self.final_results if r.is_skipped),
        )
        if self.on_finish is not None:
            self.on_finish(self.final_results)
