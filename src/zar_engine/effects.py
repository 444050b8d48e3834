"""
Card effects: single plays, doubles, declarations and out-of-turn matches.
"""

import copy
import logging
import random
from typing import Optional

from .constants import (
    COMMAND_CRAB, COMMAND_FROG, COMMAND_WASP, DOUBLE_WASP_DRAW,
    MATCH_PENALTY_DRAW, WASP_DRAW,
)
from .models import Card, GameState
from .turns import _advance, _draw, _place, flip_direction

logger = logging.getLogger(__name__)


def _resolve_single(state: GameState, card: Card) -> None:
    if card.is_power:
        # Same player must declare before the turn moves on
        state.waiting_for_declaration = True
        return

    if card.command == COMMAND_WASP:
        state.pending_draw_count += WASP_DRAW
        _advance(state, 1, None)
    elif card.command == COMMAND_FROG:
        _advance(state, 2, None)
    elif card.command == COMMAND_CRAB:
        state.direction = flip_direction(state.direction)
        _advance(state, 1, None)
    else:
        _advance(state, 1, None)


def apply_play(state: GameState, player_id: str, card: Card) -> GameState:
    """
    Apply a single card play.

    The caller has already taken the card out of the player's hand.

    Args:
        state: Current game state
        player_id: Player who played the card
        card: The card being played

    Returns:
        Updated state with the card on the discard pile and its effect applied
    """
    new_state = copy.deepcopy(state)
    _place(new_state, card)
    _resolve_single(new_state, card)
    logger.debug(f"{player_id} played {card.id} ({card.kind})")
    return new_state


def apply_double(state: GameState, player_id: str, card1: Card, card2: Card) -> GameState:
    """
    Apply a double play of two matching cards.

    Both cards go on the discard pile, card2 last. The effect follows card2
    with amplified magnitude: a double wasp adds four draws, a double frog
    skips two players, a double crab reverses twice (no change).

    Args:
        state: Current game state
        player_id: Player making the double play
        card1: First card placed
        card2: Second card placed, the resolved top

    Returns:
        Updated state with the combined effect applied
    """
    new_state = copy.deepcopy(state)
    _place(new_state, card1)
    _place(new_state, card2)

    if card2.is_power:
        new_state.waiting_for_declaration = True
    elif card2.command == COMMAND_WASP:
        new_state.pending_draw_count += DOUBLE_WASP_DRAW
        _advance(new_state, 1, None)
    elif card2.command == COMMAND_FROG:
        _advance(new_state, 3, None)
    else:
        # Basic doubles and double crabs both just move on one step
        _advance(new_state, 1, None)

    logger.debug(f"{player_id} double-played {card1.id}+{card2.id}")
    return new_state


def apply_dragon_declaration(state: GameState, symbol: str) -> GameState:
    """Resolve a dragon by declaring the symbol to follow, then move on."""
    new_state = copy.deepcopy(state)
    new_state.declared_symbol = symbol
    new_state.declared_color = None
    new_state.waiting_for_declaration = False
    _advance(new_state, 1, None)
    return new_state


def apply_peacock_declaration(state: GameState, color: str) -> GameState:
    """Resolve a peacock by declaring the color to follow, then move on."""
    new_state = copy.deepcopy(state)
    new_state.declared_color = color
    new_state.declared_symbol = None
    new_state.waiting_for_declaration = False
    _advance(new_state, 1, None)
    return new_state


def resolve_match(
    state: GameState,
    matcher_id: str,
    card: Card,
    rng: Optional[random.Random] = None
) -> GameState:
    """
    Resolve an out-of-turn match.

    The matched card has already been removed from the matcher's hand. The
    player whose turn it was draws one penalty card, unless the match is a
    wasp, whose draw stacks onto the pending count instead. Play continues
    from the matcher as if they had played the card on their own turn.

    Args:
        state: Current game state
        matcher_id: Player interrupting with a matching card
        card: The matching card
        rng: Optional random source for a reshuffle during the penalty draw

    Returns:
        Updated state with the match window closed
    """
    new_state = copy.deepcopy(state)
    interrupted = new_state.current_player

    if card.command != COMMAND_WASP and interrupted is not None:
        _draw(new_state, interrupted.id, MATCH_PENALTY_DRAW, rng)

    matcher_index = new_state.player_index(matcher_id)
    if matcher_index >= 0:
        new_state.current_player_index = matcher_index
    new_state.drawn_this_turn = False
    new_state.match_window_open = False

    _place(new_state, card)
    _resolve_single(new_state, card)

    logger.debug(f"{matcher_id} matched {card.id} out of turn")
    return new_state
