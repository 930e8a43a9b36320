from __future__ import annotations

from .models import Card, Result


class ResultLedger:
    """Latest outcome per card id. Aggregates are always derived from the entries."""

    def __init__(self) -> None:
        self._entries: dict[str, Result] = {}
        # ids that received a submit or skip, as opposed to a bookmark-only write
        self._answered: set[str] = set()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, card_id: str) -> bool:
        return card_id in self._entries

    def record(
        self,
        card: Card,
        user_input: str,
        skipped: bool,
        bookmarked: bool,
        answered: bool = True,
    ) -> Result:
        result = Result(
            card_id=card.id,
            source=card.source,
            target=card.target,
            user_input=user_input,
            is_skipped=skipped,
            is_bookmarked=bookmarked,
        )
        self._entries[card.id] = result
        if answered:
            self._answered.add(card.id)
        return result

    def get(self, card_id: str) -> Result | None:
        return self._entries.get(card_id)

    def is_answered(self, card_id: str) -> bool:
        return card_id in self._answered

    def count_skipped(self) -> int:
        return sum(1 for r in self._entries.values() if r.is_skipped)

    def skipped_positions(self, cards: list[Card]) -> list[int]:
        positions = []
        for i, card in enumerate(cards):
            r = self._entries.get(card.id)
            if r is not None and r.is_skipped:
                positions.append(i)
        return positions

    def finalize(self, cards: list[Card]) -> list[Result]:
        out: list[Result] = []
        for card in cards:
            r = self._entries.get(card.id)
            if r is None:
                out.append(Result(card_id=card.id, source=card.source, target=card.target, is_skipped=True))
            elif card.id not in self._answered:
                # bookmarked but never submitted or skipped
                out.append(
                    Result(
                        card_id=r.card_id,
                        source=r.source,
                        target=r.target,
                        user_input=r.user_input,
                        is_skipped=True,
                        is_bookmarked=r.is_bookmarked,
                    )
                )
            else:
                out.append(r)
        return out
