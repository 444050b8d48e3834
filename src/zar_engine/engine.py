"""Intent-level game API: validate, then apply engine primitives.

Every function takes a GameState and returns an ActionResult. On failure the
result carries the untouched input state plus an error code and message; on
success it carries the new state with its version bumped.
"""

import copy
import logging
import random
from typing import Any, Dict, Optional

from .constants import (
    COLORS, ERROR_ACTION_NOT_ALLOWED, ERROR_NAME_TAKEN,
    ERROR_NOT_ENOUGH_PLAYERS, ERROR_PLAYER_NOT_FOUND, ERROR_ROOM_FULL,
    ERROR_WRONG_PHASE, LAST_CARD_PENALTY_DRAW, PHASE_LOBBY, PHASE_PLAYING,
    PHASE_ROUND_OVER, POWER_DRAGON, POWER_PEACOCK, SYMBOLS,
)
from .effects import (
    apply_double, apply_dragon_declaration, apply_peacock_declaration,
    apply_play, resolve_match,
)
from .lifecycle import check_round_over, remove_player, start_round
from .models import GameState, Player
from .rules import RuleConfig
from .turns import _draw, _remove, advance_turn, is_active_player
from .validate import (
    validate_announce, validate_challenge, validate_declaration,
    validate_draw, validate_match, validate_pass, validate_play_card,
    validate_play_double,
)

logger = logging.getLogger(__name__)


class ActionResult:
    """Outcome of an intent."""

    def __init__(
        self,
        success: bool,
        state: GameState,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None
    ):
        self.success = success
        self.state = state
        self.error_code = error_code
        self.error_message = error_message
        self.data = data or {}

    @classmethod
    def ok(cls, state: GameState, **data) -> 'ActionResult':
        state.increment_version()
        return cls(True, state, data=data)

    @classmethod
    def fail(cls, state: GameState, error_code: str, error_message: str) -> 'ActionResult':
        return cls(False, state, error_code=error_code, error_message=error_message)

    @classmethod
    def from_validation(cls, state: GameState, validation) -> 'ActionResult':
        return cls.fail(state, validation.error_code, validation.error_message)


# Lobby -------------------------------------------------------------------

def create_game(
    host_id: str,
    host_name: str,
    target_score: Optional[int] = None,
    rules: Optional[RuleConfig] = None
) -> GameState:
    """Create a lobby with the host seated."""
    rules = rules or RuleConfig()
    state = GameState(
        target_score=target_score or rules.default_target_score,
        rules=rules,
    )
    state.players.append(Player(id=host_id, name=host_name))
    return state


def join_game(state: GameState, player_id: str, name: str, is_bot: bool = False) -> ActionResult:
    """Seat a new player in the lobby."""
    if state.phase != PHASE_LOBBY:
        return ActionResult.fail(state, ERROR_WRONG_PHASE, "Game already started.")

    if len(state.players) >= state.rules.max_players:
        return ActionResult.fail(
            state, ERROR_ROOM_FULL, f"Room is full (max {state.rules.max_players} players)."
        )

    if any(p.name == name for p in state.players):
        return ActionResult.fail(state, ERROR_NAME_TAKEN, "That name is already taken in this room.")

    if state.get_player(player_id) is not None:
        return ActionResult.fail(state, ERROR_ACTION_NOT_ALLOWED, "Already seated.")

    new_state = copy.deepcopy(state)
    new_state.players.append(Player(id=player_id, name=name, is_bot=is_bot))
    return ActionResult.ok(new_state)


def bots_needed(state: GameState) -> int:
    """Seats to fill before reaching the bot suggestion threshold."""
    target = min(state.rules.suggest_bots_below, state.rules.max_players)
    return max(0, target - len(state.players))


def add_bots(state: GameState, count: int) -> ActionResult:
    """Seat `count` bots named Bot 1, Bot 2, ..."""
    if state.phase != PHASE_LOBBY:
        return ActionResult.fail(state, ERROR_WRONG_PHASE, "Game already started.")

    count = min(count, state.rules.max_players - len(state.players))
    new_state = copy.deepcopy(state)
    existing = sum(1 for p in new_state.players if p.is_bot)
    for i in range(count):
        number = existing + i + 1
        new_state.players.append(Player(id=f"bot_{number}", name=f"Bot {number}", is_bot=True))
    return ActionResult.ok(new_state, added=count)


def start_game(state: GameState, rng: Optional[random.Random] = None) -> ActionResult:
    """Deal the first round."""
    if state.phase != PHASE_LOBBY:
        return ActionResult.fail(state, ERROR_WRONG_PHASE, "Game already started.")

    if len(state.players) < state.rules.min_players:
        return ActionResult.fail(
            state, ERROR_NOT_ENOUGH_PLAYERS, f"Need at least {state.rules.min_players} players."
        )

    new_state = start_round(state, rng)
    logger.info(f"Game started with {len(new_state.players)} players")
    return ActionResult.ok(new_state)


def start_next_round(state: GameState, rng: Optional[random.Random] = None) -> ActionResult:
    """Deal the next round after a round is over; scores carry over."""
    if state.phase != PHASE_ROUND_OVER:
        return ActionResult.fail(state, ERROR_WRONG_PHASE, "Round is not over.")
    return ActionResult.ok(start_round(state, rng))


# Turn actions ------------------------------------------------------------

def _finish_play(state: GameState, player_id: str) -> GameState:
    player = state.get_player(player_id)
    if player is not None and not player.hand:
        return check_round_over(state)
    return state


def play_card(state: GameState, player_id: str, card_id: str) -> ActionResult:
    """Play one card on your turn."""
    validation = validate_play_card(state, player_id, card_id)
    if not validation.valid:
        return ActionResult.from_validation(state, validation)

    new_state = copy.deepcopy(state)
    card = _remove(new_state, player_id, card_id)
    new_state.match_window_open = False
    new_state = apply_play(new_state, player_id, card)
    return ActionResult.ok(_finish_play(new_state, player_id), card=card)


def play_double(state: GameState, player_id: str, card_id1: str, card_id2: str) -> ActionResult:
    """Play two matching cards as one move."""
    validation = validate_play_double(state, player_id, card_id1, card_id2)
    if not validation.valid:
        return ActionResult.from_validation(state, validation)

    new_state = copy.deepcopy(state)
    card1 = _remove(new_state, player_id, card_id1)
    card2 = _remove(new_state, player_id, card_id2)
    new_state.match_window_open = False
    new_state = apply_double(new_state, player_id, card1, card2)
    return ActionResult.ok(_finish_play(new_state, player_id), cards=[card1, card2])


def declare_symbol(state: GameState, player_id: str, symbol: str) -> ActionResult:
    validation = validate_declaration(state, player_id, POWER_DRAGON, symbol)
    if not validation.valid:
        return ActionResult.from_validation(state, validation)
    return ActionResult.ok(apply_dragon_declaration(state, symbol))


def declare_color(state: GameState, player_id: str, color: str) -> ActionResult:
    validation = validate_declaration(state, player_id, POWER_PEACOCK, color)
    if not validation.valid:
        return ActionResult.from_validation(state, validation)
    return ActionResult.ok(apply_peacock_declaration(state, color))


def draw_card(state: GameState, player_id: str, rng: Optional[random.Random] = None) -> ActionResult:
    """
    Draw on your turn.

    With a wasp penalty pending the whole penalty is drawn; otherwise one
    card. Either way the player keeps the turn and may still play or pass.
    """
    validation = validate_draw(state, player_id)
    if not validation.valid:
        return ActionResult.from_validation(state, validation)

    new_state = copy.deepcopy(state)
    drawn = _draw(new_state, player_id, validation.data['count'], rng)
    new_state.pending_draw_count = 0
    new_state.drawn_this_turn = True
    new_state.match_window_open = False

    return ActionResult.ok(new_state, drawn=drawn, forced=validation.data['forced'])


def pass_turn(state: GameState, player_id: str) -> ActionResult:
    validation = validate_pass(state, player_id)
    if not validation.valid:
        return ActionResult.from_validation(state, validation)
    new_state = advance_turn(state)
    new_state.match_window_open = False
    return ActionResult.ok(new_state)


def match_card(
    state: GameState,
    player_id: str,
    card_id: str,
    rng: Optional[random.Random] = None
) -> ActionResult:
    """Interrupt out of turn with a card that exactly matches the top card."""
    validation = validate_match(state, player_id, card_id)
    if not validation.valid:
        return ActionResult.from_validation(state, validation)

    interrupted = state.current_player
    new_state = copy.deepcopy(state)
    card = _remove(new_state, player_id, card_id)
    new_state = resolve_match(new_state, player_id, card, rng)
    new_state = check_round_over(new_state)
    return ActionResult.ok(
        new_state,
        card=card,
        interrupted_id=interrupted.id if interrupted else None,
    )


# Last card ---------------------------------------------------------------

def announce_last_card(state: GameState, player_id: str) -> ActionResult:
    validation = validate_announce(state, player_id)
    if not validation.valid:
        return ActionResult.from_validation(state, validation)
    new_state = copy.deepcopy(state)
    new_state.get_player(player_id).announced_last_card = True
    return ActionResult.ok(new_state)


def challenge_last_card(
    state: GameState,
    challenger_id: str,
    target_id: str,
    rng: Optional[random.Random] = None
) -> ActionResult:
    """Catch a player sitting on one card without announcing it."""
    validation = validate_challenge(state, challenger_id, target_id)
    if not validation.valid:
        return ActionResult.from_validation(state, validation)
    new_state = copy.deepcopy(state)
    _draw(new_state, target_id, LAST_CARD_PENALTY_DRAW, rng)
    return ActionResult.ok(new_state)


# Match window ------------------------------------------------------------

def open_match_window(state: GameState) -> GameState:
    new_state = copy.deepcopy(state)
    new_state.match_window_open = True
    new_state.increment_version()
    return new_state


def close_match_window(state: GameState) -> GameState:
    """Close the window and settle the round if someone went out."""
    new_state = copy.deepcopy(state)
    new_state.match_window_open = False
    new_state = check_round_over(new_state)
    new_state.increment_version()
    return new_state


# Connections -------------------------------------------------------------

def disconnect_player(
    state: GameState,
    player_id: str,
    rng: Optional[random.Random] = None
) -> ActionResult:
    """
    Handle a dropped connection.

    In the lobby the seat is freed at once. During a game the player is
    marked disconnected and, if it was their turn, a pending declaration is
    made for them at random or the turn simply moves on.
    """
    player = state.get_player(player_id)
    if player is None:
        return ActionResult.fail(state, ERROR_PLAYER_NOT_FOUND, "Player not found.")

    if state.phase == PHASE_LOBBY:
        new_state = copy.deepcopy(state)
        new_state.players = [p for p in new_state.players if p.id != player_id]
        new_state.current_player_index = 0
        return ActionResult.ok(new_state, removed=True)

    new_state = copy.deepcopy(state)
    new_state.get_player(player_id).connected = False

    current = new_state.current_player
    if new_state.phase == PHASE_PLAYING and current is not None and current.id == player_id:
        rng = rng or random.Random()
        top = new_state.top_card
        if new_state.waiting_for_declaration and top is not None and top.power == POWER_DRAGON:
            new_state = apply_dragon_declaration(new_state, rng.choice(SYMBOLS))
        elif new_state.waiting_for_declaration and top is not None and top.power == POWER_PEACOCK:
            new_state = apply_peacock_declaration(new_state, rng.choice(COLORS))
        else:
            new_state.waiting_for_declaration = False
            new_state = advance_turn(new_state)

    return ActionResult.ok(new_state, removed=False)


def reconnect_player(state: GameState, old_id: str, new_id: str) -> ActionResult:
    """Hand a disconnected seat over to a new connection id."""
    player = state.get_player(old_id)
    if player is None or player.connected or player.is_bot:
        return ActionResult.fail(state, ERROR_PLAYER_NOT_FOUND, "No disconnected seat to reclaim.")

    new_state = copy.deepcopy(state)
    seat = new_state.get_player(old_id)
    seat.id = new_id
    seat.connected = True
    if new_state.round_winner_id == old_id:
        new_state.round_winner_id = new_id
    return ActionResult.ok(new_state)


def expire_player(state: GameState, player_id: str) -> ActionResult:
    """Drop a seat whose reconnect grace period ran out."""
    player = state.get_player(player_id)
    if player is None or player.connected:
        return ActionResult.fail(state, ERROR_PLAYER_NOT_FOUND, "Seat already reclaimed.")

    new_state = remove_player(state, player_id)
    current = new_state.current_player
    if (new_state.phase == PHASE_PLAYING and current is not None
            and not is_active_player(current)):
        new_state = advance_turn(new_state)
    return ActionResult.ok(new_state)
