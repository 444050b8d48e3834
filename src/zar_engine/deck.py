"""
Deck construction, shuffling and hand scoring.
"""

import random
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, TypeVar

from .constants import (
    COLORS, COMMANDS, COPIES_PER_CARD, DECK_SIZE, KIND_BASIC, KIND_COMMAND,
    KIND_POWER, POINT_SCALES, POINT_SCALE_STANDARD, POWER_PAIRS, POWERS,
    SYMBOLS,
)
from .models import Card, GameState

T = TypeVar('T')


def create_deck(points: Optional[Dict[str, int]] = None) -> List[Card]:
    """
    Enumerate the 62-card composition in a fixed order.

    Args:
        points: Point table keyed by kind/command (defaults to the standard scale)

    Returns:
        Unshuffled list of cards with ids "1".."62"
    """
    if points is None:
        points = POINT_SCALES[POINT_SCALE_STANDARD]

    deck = []

    def next_id() -> str:
        return str(len(deck) + 1)

    # 36 basic cards: 6 symbols x 3 colors x 2 copies
    for symbol in SYMBOLS:
        for color in COLORS:
            for _ in range(COPIES_PER_CARD):
                deck.append(Card(id=next_id(), kind=KIND_BASIC, color=color,
                                 symbol=symbol, points=points[KIND_BASIC]))

    # 18 command cards: 3 commands x 3 colors x 2 copies
    for command in COMMANDS:
        for color in COLORS:
            for _ in range(COPIES_PER_CARD):
                deck.append(Card(id=next_id(), kind=KIND_COMMAND, color=color,
                                 command=command, points=points[command]))

    # 8 power cards: 2 powers x 2 pairs x 2 copies
    for power in POWERS:
        for pair in POWER_PAIRS:
            for _ in range(COPIES_PER_CARD):
                deck.append(Card(id=next_id(), kind=KIND_POWER, power=power,
                                 pair=pair, points=points[KIND_POWER]))

    return deck


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """
    Shuffle a sequence without touching it.

    Args:
        items: Elements to shuffle
        rng: Optional random source for deterministic shuffling

    Returns:
        Shuffled copy of the items
    """
    items_copy = list(items)

    if rng is not None:
        rng.shuffle(items_copy)
    else:
        random.shuffle(items_copy)

    return items_copy


def build_deck(points: Optional[Dict[str, int]] = None,
               rng: Optional[random.Random] = None) -> List[Card]:
    """Build a fresh 62-card deck and return it shuffled."""
    return shuffle(create_deck(points), rng)


def hand_score(hand: Iterable[Card]) -> int:
    """Sum of card points in a hand; 0 for an empty hand."""
    return sum(card.points for card in hand)


def composition(cards: Iterable[Card]) -> Counter:
    """Count cards by kind, command and power."""
    counts = Counter()
    for card in cards:
        counts[card.kind] += 1
        if card.command:
            counts[card.command] += 1
        if card.power:
            counts[card.power] += 1
    return counts


def validate_deck_integrity(state: GameState) -> bool:
    """
    Validate that all 62 cards are accounted for and no duplicates exist.

    Args:
        state: Game state to validate

    Returns:
        True if deck integrity is valid
    """
    all_cards = []

    for player in state.players:
        all_cards.extend(player.hand)

    all_cards.extend(state.discard_pile)
    all_cards.extend(state.draw_pile)

    ids = [card.id for card in all_cards]
    counts = composition(all_cards)

    return (
        len(all_cards) == DECK_SIZE and
        len(set(ids)) == len(ids) and
        counts[KIND_BASIC] == 36 and
        counts[KIND_COMMAND] == 18 and
        counts[KIND_POWER] == 8
    )
