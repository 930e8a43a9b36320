from __future__ import annotations

from pathlib import Path
from typing import Any
import csv
import json
import logging

from .models import Card

logger = logging.getLogger(__name__)

SOURCE_KEYS = ("source", "chinese", "front", "term", "question", "zh", "cn")
TARGET_KEYS = ("target", "english", "back", "definition", "answer", "en")


class CardImportError(ValueError):
    pass


def _lookup(item: dict, keys: tuple[str, ...]) -> Any:
    lowered = {str(k).lower(): v for k, v in item.items()}
    for k in keys:
        v = lowered.get(k)
        if v is not None and str(v).strip():
            return v
    return None


def item_to_card(item: Any, index: int) -> Card | None:
    card_id = f"card-{index}"
    if isinstance(item, dict):
        source = _lookup(item, SOURCE_KEYS)
        target = _lookup(item, TARGET_KEYS)
        if source is None or target is None:
            return None
        if str(item.get("id") or "").strip():
            card_id = str(item["id"]).strip()
        return Card(id=card_id, source=str(source).strip(), target=str(target).strip())
    if isinstance(item, list) and len(item) >= 2:
        return Card(id=card_id, source=str(item[0]).strip(), target=str(item[1]).strip())
    return None


def _parse_json_array(text: str) -> list[Card] | None:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.debug("Not a JSON array, falling back to line parsing: %s", e)
        return None
    if not isinstance(data, list):
        return None
    cards = []
    for i, item in enumerate(data):
        card = item_to_card(item, i)
        if card:
            cards.append(card)
    return cards


def _split_delimited(line: str) -> list[str]:
    if "\t" in line:
        parts = line.split("\t")
    else:
        parts = next(csv.reader([line], skipinitialspace=True), [])
    return [p.strip().strip('"').strip() for p in parts]


def _parse_lines(text: str) -> list[Card]:
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    cards = []
    for i, line in enumerate(lines):
        if line.startswith("{"):
            try:
                item = json.loads(line.rstrip(","))
            except json.JSONDecodeError:
                item = None
            if isinstance(item, dict):
                card = item_to_card(item, i)
                if card:
                    cards.append(card)
                continue

        parts = _split_delimited(line)
        if len(parts) < 2 or not parts[0] or not parts[1]:
            continue
        cards.append(Card(id=f"card-{i}", source=parts[0], target=parts[1]))
    return cards


def parse_cards(text: str) -> list[Card]:
    stripped = (text or "").replace("\ufeff", "").strip()
    if not stripped:
        raise CardImportError("No input to import")

    cards = None
    if stripped.startswith("["):
        cards = _parse_json_array(stripped)
    if cards is None:
        cards = _parse_lines(stripped)
    if not cards:
        raise CardImportError("Could not parse any flashcards; expected JSON, JSON Lines, CSV or TSV")

    seen = set()
    for card in cards:
        if card.id in seen:
            raise CardImportError(f"Duplicate card id: {card.id}")
        seen.add(card.id)

    logger.info("Imported %d cards", len(cards))
    return cards


def load_cards(path: Path) -> list[Card]:
    if not path.exists():
        raise CardImportError(f"File not found: {path}")
    text = path.read_text(encoding="utf-8-sig", errors="ignore")
    return parse_cards(text)


def demo_cards() -> list[Card]:
    return [
        Card(id="1", source="你好", target="Hello"),
        Card(id="2", source="这也是一个测试", target="This is also a test"),
        Card(id="3", source="人工智能改变世界", target="Artificial intelligence changes the world"),
        Card(id="4", source="保持饥渴，保持愚蠢", target="Stay hungry, stay foolish"),
        Card(id="5", source="千里之行始于足下", target="A journey of a thousand miles begins with a single step"),
    ]
