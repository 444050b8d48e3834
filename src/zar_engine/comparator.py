"""
Card legality: what may be played on the discard pile, and which cards match.
"""

from typing import Optional

from .constants import COMMAND_WASP, POWER_DRAGON, POWER_PEACOCK
from .models import Card, GameState


def _shares(a: Optional[str], b: Optional[str]) -> bool:
    return a is not None and a == b


def card_under_power(state: GameState) -> Optional[Card]:
    """Most recent non-power card on the discard pile."""
    for card in reversed(state.discard_pile):
        if not card.is_power:
            return card
    return None


def is_normal_match(card: Card, top: Card) -> bool:
    """Color, symbol or command shared with the top card."""
    if _shares(card.color, top.color):
        return True
    if _shares(card.symbol, top.symbol):
        return True
    return _shares(card.command, top.command)


def can_play(card: Card, state: GameState) -> bool:
    """
    Decide whether a card may be played on the current table.

    Args:
        card: Card the player wants to play
        state: Current game state

    Returns:
        True if the card is a legal play now
    """
    top = state.top_card
    if top is None:
        return True

    # A stacked penalty can only be redirected with another wasp
    if state.pending_draw_count > 0:
        return card.is_command and card.command == COMMAND_WASP

    if card.is_power:
        if card.power == POWER_DRAGON:
            return not (top.is_power and top.power == POWER_PEACOCK)
        return not (top.is_power and top.power == POWER_DRAGON)

    escape = state.rules.declaration_escape

    if state.declared_symbol and not state.declared_color:
        if _shares(card.symbol, state.declared_symbol):
            return True
        if escape:
            under = card_under_power(state)
            return under is not None and _shares(card.color, under.color)
        return False

    if state.declared_color and not state.declared_symbol:
        if _shares(card.color, state.declared_color):
            return True
        if escape:
            under = card_under_power(state)
            return under is not None and (
                _shares(card.symbol, under.symbol) or _shares(card.command, under.command)
            )
        return False

    return is_normal_match(card, top)


def is_match(a: Card, b: Card) -> bool:
    """
    Exact match used for double plays and out-of-turn interrupts.

    Power cards match only the same power from the same pair. Other cards
    need the same color plus the same symbol (basic) or command (command).
    """
    if a.is_power and b.is_power:
        return a.power == b.power and a.pair == b.pair
    if a.is_power or b.is_power:
        return False
    if a.color != b.color:
        return False
    if a.symbol is not None and b.symbol is not None:
        return a.symbol == b.symbol
    if a.command is not None and b.command is not None:
        return a.command == b.command
    return False


def is_double(card1: Card, card2: Card) -> bool:
    return is_match(card1, card2)
