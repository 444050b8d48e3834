"""Game models and data structures"""

from dataclasses import dataclass, field
from typing import List, Optional

from .constants import (
    DIRECTION_CW, KIND_BASIC, KIND_COMMAND, KIND_POWER, PHASE_LOBBY,
)
from .rules import RuleConfig


@dataclass(frozen=True)
class Card:
    id: str
    kind: str  # basic|command|power
    points: int = 0
    color: Optional[str] = None
    symbol: Optional[str] = None
    command: Optional[str] = None
    power: Optional[str] = None
    pair: Optional[int] = None  # which of the two identical power pairs

    @property
    def is_basic(self) -> bool:
        return self.kind == KIND_BASIC

    @property
    def is_command(self) -> bool:
        return self.kind == KIND_COMMAND

    @property
    def is_power(self) -> bool:
        return self.kind == KIND_POWER

    def to_dict(self) -> dict:
        data = {'id': self.id, 'kind': self.kind, 'points': self.points}
        for attr in ('color', 'symbol', 'command', 'power', 'pair'):
            value = getattr(self, attr)
            if value is not None:
                data[attr] = value
        return data


@dataclass
class Player:
    id: str
    name: str
    hand: List[Card] = field(default_factory=list)
    score: int = 0
    connected: bool = True
    announced_last_card: bool = False
    is_bot: bool = False

    def find_card(self, card_id: str) -> Optional[Card]:
        for card in self.hand:
            if card.id == card_id:
                return card
        return None


@dataclass
class GameState:
    phase: str = PHASE_LOBBY  # lobby|playing|round_over|game_over
    players: List[Player] = field(default_factory=list)
    draw_pile: List[Card] = field(default_factory=list)
    discard_pile: List[Card] = field(default_factory=list)  # top = last
    current_player_index: int = 0
    direction: str = DIRECTION_CW
    pending_draw_count: int = 0
    declared_symbol: Optional[str] = None  # after a dragon
    declared_color: Optional[str] = None  # after a peacock
    waiting_for_declaration: bool = False
    drawn_this_turn: bool = False
    match_window_open: bool = False
    target_score: int = 50
    round_winner_id: Optional[str] = None
    round_number: int = 0
    version: int = 0
    rules: RuleConfig = field(default_factory=RuleConfig)

    @property
    def top_card(self) -> Optional[Card]:
        return self.discard_pile[-1] if self.discard_pile else None

    @property
    def current_player(self) -> Optional[Player]:
        if not self.players:
            return None
        return self.players[self.current_player_index % len(self.players)]

    def get_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def player_index(self, player_id: str) -> int:
        for index, player in enumerate(self.players):
            if player.id == player_id:
                return index
        return -1

    def card_count(self) -> int:
        """Total cards across hands and both piles."""
        in_hands = sum(len(p.hand) for p in self.players)
        return in_hands + len(self.draw_pile) + len(self.discard_pile)

    def increment_version(self):
        self.version += 1
