"""
Base bot interface and utilities.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..models import GameState


class BotAction:
    """Represents a bot action."""

    def __init__(self, action_type: str, **kwargs):
        self.type = action_type
        self.data = kwargs

    def __eq__(self, other):
        return isinstance(other, BotAction) and (self.type, self.data) == (other.type, other.data)

    def __repr__(self):
        return f"BotAction({self.type!r}, {self.data!r})"

    @classmethod
    def declare_symbol(cls, symbol: str) -> 'BotAction':
        return cls('declare_symbol', symbol=symbol)

    @classmethod
    def declare_color(cls, color: str) -> 'BotAction':
        return cls('declare_color', color=color)

    @classmethod
    def play_card(cls, card_id: str) -> 'BotAction':
        """Create a single card play."""
        return cls('play_card', card_id=card_id)

    @classmethod
    def play_double(cls, card_id1: str, card_id2: str) -> 'BotAction':
        """Create a double play."""
        return cls('play_double', card_id1=card_id1, card_id2=card_id2)

    @classmethod
    def draw(cls) -> 'BotAction':
        return cls('draw_card')

    @classmethod
    def pass_turn(cls) -> 'BotAction':
        """Create a pass action."""
        return cls('pass')


class BaseBot(ABC):
    """Abstract base class for bot players."""

    def __init__(self, player_id: str):
        self.player_id = player_id

    @abstractmethod
    def choose_action(self, state: GameState) -> Optional[BotAction]:
        """
        Choose an action based on the current game state.

        Args:
            state: Current game state

        Returns:
            BotAction to take, or None if no action needed
        """
        pass

    def is_my_turn(self, state: GameState) -> bool:
        """Check if it's this bot's turn."""
        current = state.current_player
        return current is not None and current.id == self.player_id
