"""
Precondition checks for player intents.

Validators never modify state; the engine calls them before any mutation so
a rejected intent leaves the room untouched.
"""

from typing import Dict, Optional

from .comparator import can_play, is_double, is_match
from .constants import (
    COLORS, ERROR_ACTION_NOT_ALLOWED, ERROR_ALREADY_DREW,
    ERROR_DECLARATION_PENDING, ERROR_DOUBLE_GOING_OUT, ERROR_ILLEGAL_DOUBLE,
    ERROR_ILLEGAL_PLAY, ERROR_MATCH_WINDOW_CLOSED, ERROR_MUST_DRAW,
    ERROR_NO_DECLARATION, ERROR_NO_MATCH, ERROR_NOT_YOUR_TURN, ERROR_OWNERSHIP,
    ERROR_PLAYER_NOT_FOUND, ERROR_WRONG_PHASE, PHASE_PLAYING, POWER_DRAGON,
    SYMBOLS,
)
from .models import GameState


class ValidationResult:
    """Result of intent validation."""

    def __init__(
        self,
        valid: bool,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
        data: Optional[Dict] = None
    ):
        self.valid = valid
        self.error_code = error_code
        self.error_message = error_message
        self.data = data or {}

    @classmethod
    def success(cls, data: Optional[Dict] = None) -> 'ValidationResult':
        """Create a successful validation result."""
        return cls(valid=True, data=data)

    @classmethod
    def error(cls, error_code: str, error_message: str) -> 'ValidationResult':
        """Create an error validation result."""
        return cls(valid=False, error_code=error_code, error_message=error_message)


def validate_turn(state: GameState, player_id: str) -> ValidationResult:
    """
    Common checks for anything done on one's own turn.

    Args:
        state: Current game state
        player_id: ID of player attempting the action

    Returns:
        ValidationResult with validation outcome
    """
    if state.phase != PHASE_PLAYING:
        return ValidationResult.error(ERROR_WRONG_PHASE, "Game not in progress.")

    if state.get_player(player_id) is None:
        return ValidationResult.error(ERROR_PLAYER_NOT_FOUND, "Player not found.")

    if state.waiting_for_declaration:
        return ValidationResult.error(
            ERROR_DECLARATION_PENDING,
            "Waiting for symbol/color declaration."
        )

    current = state.current_player
    if current is None or current.id != player_id:
        return ValidationResult.error(ERROR_NOT_YOUR_TURN, "It's not your turn.")

    return ValidationResult.success()


def validate_play_card(state: GameState, player_id: str, card_id: str) -> ValidationResult:
    """Validate a single card play."""
    result = validate_turn(state, player_id)
    if not result.valid:
        return result

    card = state.get_player(player_id).find_card(card_id)
    if card is None:
        return ValidationResult.error(ERROR_OWNERSHIP, "Card not in your hand.")

    if not can_play(card, state):
        return ValidationResult.error(ERROR_ILLEGAL_PLAY, "Cannot play that card now.")

    return ValidationResult.success({'card': card})


def validate_play_double(
    state: GameState,
    player_id: str,
    card_id1: str,
    card_id2: str
) -> ValidationResult:
    """
    Validate a double play.

    Both cards must be held, match each other exactly and be playable. A
    double may never empty the hand.
    """
    result = validate_turn(state, player_id)
    if not result.valid:
        return result

    player = state.get_player(player_id)
    card1 = player.find_card(card_id1)
    card2 = player.find_card(card_id2)
    if card1 is None or card2 is None or card_id1 == card_id2:
        return ValidationResult.error(ERROR_OWNERSHIP, "Cards not in your hand.")

    if not is_double(card1, card2):
        return ValidationResult.error(ERROR_ILLEGAL_DOUBLE, "Cards are not a matching pair.")

    if not can_play(card1, state):
        return ValidationResult.error(ERROR_ILLEGAL_PLAY, "Cannot play that card now.")

    if len(player.hand) <= 2:
        return ValidationResult.error(ERROR_DOUBLE_GOING_OUT, "Cannot go out on a double.")

    return ValidationResult.success({'card1': card1, 'card2': card2})


def validate_declaration(state: GameState, player_id: str, power: str, value: str) -> ValidationResult:
    """
    Validate a symbol (dragon) or color (peacock) declaration.

    Args:
        state: Current game state
        player_id: Player declaring
        power: POWER_DRAGON for a symbol, POWER_PEACOCK for a color
        value: The declared symbol or color
    """
    if state.phase != PHASE_PLAYING:
        return ValidationResult.error(ERROR_WRONG_PHASE, "Game not in progress.")

    current = state.current_player
    if current is None or current.id != player_id:
        return ValidationResult.error(ERROR_NOT_YOUR_TURN, "It's not your turn.")

    top = state.top_card
    if not state.waiting_for_declaration or top is None or top.power != power:
        return ValidationResult.error(ERROR_NO_DECLARATION, "Nothing to declare.")

    allowed = SYMBOLS if power == POWER_DRAGON else COLORS
    if value not in allowed:
        kind = 'symbol' if power == POWER_DRAGON else 'color'
        return ValidationResult.error(ERROR_ACTION_NOT_ALLOWED, f"Unknown {kind}: {value}")

    return ValidationResult.success({'value': value})


def validate_draw(state: GameState, player_id: str) -> ValidationResult:
    """A forced draw is always allowed; a voluntary one once per turn."""
    result = validate_turn(state, player_id)
    if not result.valid:
        return result

    if state.pending_draw_count > 0:
        return ValidationResult.success({'count': state.pending_draw_count, 'forced': True})

    if state.drawn_this_turn:
        return ValidationResult.error(ERROR_ALREADY_DREW, "You already drew a card this turn.")

    return ValidationResult.success({'count': 1, 'forced': False})


def validate_pass(state: GameState, player_id: str) -> ValidationResult:
    """Validate a pass attempt."""
    result = validate_turn(state, player_id)
    if not result.valid:
        return result

    if state.pending_draw_count > 0:
        return ValidationResult.error(ERROR_MUST_DRAW, "You must draw your wasp cards first.")

    if state.rules.require_draw_before_pass and not state.drawn_this_turn:
        return ValidationResult.error(ERROR_MUST_DRAW, "You must draw a card before passing.")

    return ValidationResult.success({'action': 'pass'})


def validate_match(state: GameState, player_id: str, card_id: str) -> ValidationResult:
    """Validate an out-of-turn match against the top card."""
    if state.phase != PHASE_PLAYING:
        return ValidationResult.error(ERROR_WRONG_PHASE, "Game not in progress.")

    player = state.get_player(player_id)
    if player is None:
        return ValidationResult.error(ERROR_PLAYER_NOT_FOUND, "Player not found.")

    if state.waiting_for_declaration:
        return ValidationResult.error(
            ERROR_DECLARATION_PENDING,
            "Waiting for symbol/color declaration."
        )

    if not state.match_window_open:
        return ValidationResult.error(ERROR_MATCH_WINDOW_CLOSED, "Too late to match.")

    current = state.current_player
    if current is not None and current.id == player_id:
        return ValidationResult.error(ERROR_ACTION_NOT_ALLOWED, "It's your turn, play normally.")

    card = player.find_card(card_id)
    if card is None:
        return ValidationResult.error(ERROR_OWNERSHIP, "Card not in your hand.")

    top = state.top_card
    if top is None or not is_match(card, top):
        return ValidationResult.error(ERROR_NO_MATCH, "Card does not match.")

    return ValidationResult.success({'card': card})


def validate_announce(state: GameState, player_id: str) -> ValidationResult:
    if state.phase != PHASE_PLAYING:
        return ValidationResult.error(ERROR_WRONG_PHASE, "Game not in progress.")
    player = state.get_player(player_id)
    if player is None:
        return ValidationResult.error(ERROR_PLAYER_NOT_FOUND, "Player not found.")
    if len(player.hand) != 1:
        return ValidationResult.error(ERROR_ACTION_NOT_ALLOWED, "You can only announce with one card left.")
    return ValidationResult.success()


def validate_challenge(state: GameState, challenger_id: str, target_id: str) -> ValidationResult:
    """A challenge sticks only on a one-card hand that was never announced."""
    if state.phase != PHASE_PLAYING:
        return ValidationResult.error(ERROR_WRONG_PHASE, "Game not in progress.")
    if state.get_player(challenger_id) is None:
        return ValidationResult.error(ERROR_PLAYER_NOT_FOUND, "Player not found.")
    target = state.get_player(target_id)
    if target is None:
        return ValidationResult.error(ERROR_PLAYER_NOT_FOUND, "Target player not found.")
    if len(target.hand) != 1:
        return ValidationResult.error(ERROR_ACTION_NOT_ALLOWED, "Player does not have one card left.")
    if target.announced_last_card:
        return ValidationResult.error(ERROR_ACTION_NOT_ALLOWED, "Player already announced last card.")
    return ValidationResult.success({'target': target})
