"""
Heuristic bot: the house policy used for every bot seat.
"""

import random
from typing import Optional

from .base import BaseBot, BotAction
from ..comparator import can_play, is_double
from ..constants import COLORS, COMMAND_WASP, POWER_DRAGON, SYMBOLS
from ..models import GameState


def compute_bot_action(
    state: GameState,
    bot_id: str,
    rng: Optional[random.Random] = None
) -> BotAction:
    """
    Pick one action for a bot.

    Decision order:
    - resolve a pending declaration at random
    - under a wasp penalty, redirect it with a wasp or draw
    - with more than two cards, prefer a playable double
    - play the first legal card in hand order
    - draw once, then pass

    The state is only read. Randomness is used for declarations alone.
    """
    bot = state.get_player(bot_id)
    if bot is None:
        return BotAction.pass_turn()

    if state.waiting_for_declaration:
        chooser = rng or random
        top = state.top_card
        if top is not None and top.power == POWER_DRAGON:
            return BotAction.declare_symbol(chooser.choice(SYMBOLS))
        return BotAction.declare_color(chooser.choice(COLORS))

    if state.pending_draw_count > 0:
        for card in bot.hand:
            if card.is_command and card.command == COMMAND_WASP:
                return BotAction.play_card(card.id)
        return BotAction.draw()

    hand = bot.hand
    if len(hand) > 2:
        for i, first in enumerate(hand):
            for second in hand[i + 1:]:
                if is_double(first, second) and can_play(first, state):
                    return BotAction.play_double(first.id, second.id)

    for card in hand:
        if can_play(card, state):
            return BotAction.play_card(card.id)

    if not state.drawn_this_turn:
        return BotAction.draw()
    return BotAction.pass_turn()


class HeuristicBot(BaseBot):
    """Bot seat driven by compute_bot_action."""

    def __init__(self, player_id: str, rng: Optional[random.Random] = None):
        super().__init__(player_id)
        self.rng = rng

    def choose_action(self, state: GameState) -> Optional[BotAction]:
        # Only acts on its own turn; matches are left to humans
        if not self.is_my_turn(state):
            return None
        return compute_bot_action(state, self.player_id, self.rng)
