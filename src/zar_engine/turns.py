"""
Turn order, drawing and hand bookkeeping.

Every public function takes a GameState and returns a new one; the input is
never modified. The underscore helpers work in place on a state the caller
already owns.
"""

import copy
import logging
import random
from typing import Callable, Optional, Tuple

from .constants import DIRECTION_CCW, DIRECTION_CW
from .deck import shuffle
from .models import Card, GameState, Player

logger = logging.getLogger(__name__)

ActivePredicate = Callable[[Player], bool]


def is_active_player(player: Player) -> bool:
    """Connected humans and all bots take turns."""
    return player.connected or player.is_bot


def flip_direction(direction: str) -> str:
    return DIRECTION_CCW if direction == DIRECTION_CW else DIRECTION_CW


def _advance(state: GameState, steps: int, is_active: Optional[ActivePredicate]) -> None:
    players = state.players
    count = len(players)
    if count == 0:
        return

    predicate = is_active or is_active_player
    any_active = any(predicate(p) for p in players)
    delta = 1 if state.direction == DIRECTION_CW else -1

    index = state.current_player_index
    for _ in range(steps):
        for _ in range(count):
            index = (index + delta) % count
            if not any_active or predicate(players[index]):
                break

    state.current_player_index = index
    state.drawn_this_turn = False


def advance_turn(
    state: GameState,
    steps: int = 1,
    is_active: Optional[ActivePredicate] = None
) -> GameState:
    """
    Move the turn pointer by `steps` active players in the current direction.

    Args:
        state: Current game state
        steps: Number of active players to move past
        is_active: Predicate for players allowed to take a turn

    Returns:
        New state with the pointer moved and drawn_this_turn reset
    """
    new_state = copy.deepcopy(state)
    _advance(new_state, steps, is_active)
    return new_state


def _replenish_draw_pile(state: GameState, rng: Optional[random.Random]) -> None:
    if len(state.discard_pile) <= 1:
        return
    top = state.discard_pile[-1]
    state.draw_pile = shuffle(state.discard_pile[:-1], rng)
    state.discard_pile = [top]
    logger.debug(f"Reshuffled {len(state.draw_pile)} discards into the draw pile")


def _draw(state: GameState, player_id: str, count: int, rng: Optional[random.Random]) -> int:
    player = state.get_player(player_id)
    if player is None:
        return 0

    drawn = 0
    for _ in range(count):
        if not state.draw_pile:
            _replenish_draw_pile(state, rng)
        if not state.draw_pile:
            break
        player.hand.append(state.draw_pile.pop(0))
        drawn += 1
    if len(player.hand) > 1:
        player.announced_last_card = False
    return drawn


def draw_cards(
    state: GameState,
    player_id: str,
    count: int,
    rng: Optional[random.Random] = None
) -> GameState:
    """
    Draw up to `count` cards into a player's hand.

    When the draw pile runs out, everything under the top discard is shuffled
    back in. If there is still nothing to draw the player simply receives
    fewer cards. A hand left above one card loses its last-card
    announcement. The turn pointer is never touched.
    """
    new_state = copy.deepcopy(state)
    _draw(new_state, player_id, count, rng)
    return new_state


def _remove(state: GameState, player_id: str, card_id: str) -> Optional[Card]:
    player = state.get_player(player_id)
    if player is None:
        return None
    for index, card in enumerate(player.hand):
        if card.id == card_id:
            return player.hand.pop(index)
    return None


def remove_from_hand(state: GameState, player_id: str, card_id: str) -> Tuple[GameState, Optional[Card]]:
    """
    Remove a card from a player's hand by id.

    Returns:
        Tuple of (new state, removed card); the card is None when the player
        does not hold it, in which case the state is an unchanged copy.
    """
    new_state = copy.deepcopy(state)
    card = _remove(new_state, player_id, card_id)
    return new_state, card


def _place(state: GameState, card: Card) -> None:
    state.discard_pile.append(card)
    state.declared_symbol = None
    state.declared_color = None
