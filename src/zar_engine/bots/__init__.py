"""Bot players."""

from .base import BaseBot, BotAction
from .heuristic import HeuristicBot, compute_bot_action

__all__ = ["BaseBot", "BotAction", "HeuristicBot", "compute_bot_action"]
