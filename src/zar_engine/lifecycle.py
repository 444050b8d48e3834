"""
Round setup, round scoring and seat removal.
"""

import copy
import logging
import random
from typing import Optional

from .constants import (
    DIRECTION_CCW, DIRECTION_CW, PHASE_GAME_OVER, PHASE_PLAYING, PHASE_ROUND_OVER,
)
from .deck import build_deck, hand_score
from .models import GameState
from .turns import _advance, is_active_player

logger = logging.getLogger(__name__)


def start_round(state: GameState, rng: Optional[random.Random] = None) -> GameState:
    """
    Deal a new round from a fresh deck.

    Scores carry over; everything else that belongs to a round is reset.
    The first non-power card after the deal seeds the discard pile so a round
    never opens waiting on a declaration. Power cards skipped on the way stay
    in the draw pile in their original order.

    Args:
        state: Current game state (lobby or round over)
        rng: Optional random source for deterministic deals

    Returns:
        New state in the playing phase
    """
    new_state = copy.deepcopy(state)
    deck = build_deck(new_state.rules.card_points(), rng)
    players = new_state.players
    hand_size = new_state.rules.hand_size(len(players))

    for player in players:
        player.hand = []
        player.announced_last_card = False

    index = 0
    for _ in range(hand_size):
        for player in players:
            player.hand.append(deck[index])
            index += 1

    flip = index
    while flip < len(deck) and deck[flip].is_power:
        flip += 1
    if flip == len(deck):
        flip = index

    new_state.discard_pile = [deck[flip]]
    new_state.draw_pile = deck[index:flip] + deck[flip + 1:]

    new_state.phase = PHASE_PLAYING
    new_state.current_player_index = 0
    new_state.direction = DIRECTION_CW
    new_state.pending_draw_count = 0
    new_state.declared_symbol = None
    new_state.declared_color = None
    new_state.waiting_for_declaration = False
    new_state.drawn_this_turn = False
    new_state.match_window_open = False
    new_state.round_winner_id = None
    new_state.round_number += 1

    if players and not is_active_player(players[0]):
        # Seat 0 is waiting out its reconnect grace period
        new_state.current_player_index = len(players) - 1
        _advance(new_state, 1, None)

    logger.debug(f"Round {new_state.round_number} dealt: {hand_size} cards to {len(players)} players")
    return new_state


def check_round_over(state: GameState) -> GameState:
    """
    End the round if a player has emptied their hand.

    Every other player scores the points left in their hand. The game is over
    once any score reaches the target.

    Returns:
        The state unchanged if nobody is out, otherwise a scored copy
    """
    winner = next((p for p in state.players if not p.hand), None)
    if winner is None:
        return state

    new_state = copy.deepcopy(state)
    for player in new_state.players:
        if player.id != winner.id:
            player.score += hand_score(player.hand)

    game_over = any(p.score >= new_state.target_score for p in new_state.players)
    new_state.phase = PHASE_GAME_OVER if game_over else PHASE_ROUND_OVER
    new_state.round_winner_id = winner.id
    new_state.match_window_open = False
    return new_state


def active_player_count(state: GameState) -> int:
    return sum(1 for p in state.players if is_active_player(p))


def remove_player(state: GameState, player_id: str) -> GameState:
    """
    Remove a seat for good, keeping the turn pointer on the same player.

    If the removed player held the turn, the pointer moves to the seat that
    would have played next in the current direction. A game in progress
    with fewer than two active players left is over.

    The pointer may land on a disconnected seat; callers advance past it.
    """
    removed_index = state.player_index(player_id)
    if removed_index == -1:
        return state

    new_state = copy.deepcopy(state)
    removed = new_state.players.pop(removed_index)
    remaining = len(new_state.players)

    current = new_state.current_player_index
    if removed_index < current:
        current -= 1
    elif removed_index == current:
        if new_state.direction == DIRECTION_CCW:
            current -= 1
        current = current % max(1, remaining)
    new_state.current_player_index = current

    # Cards go under the draw pile so the deck stays whole
    new_state.draw_pile.extend(removed.hand)
    logger.debug(f"Removed {removed.id}, returned {len(removed.hand)} cards to the draw pile")

    if new_state.phase == PHASE_PLAYING and active_player_count(new_state) < 2:
        new_state.phase = PHASE_GAME_OVER
    return new_state
