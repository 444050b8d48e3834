"""Room registry: per-room state, lock and timers."""

import asyncio
import logging
import random
import string
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .constants import PHASE_LOBBY, ROOM_ID_LENGTH
from .engine import create_game
from .errors import ROOM_NOT_FOUND, GameError
from .models import GameState
from .rules import RuleConfig
from .serialization import get_public_room_info

logger = logging.getLogger(__name__)

ROOM_ID_ALPHABET = string.ascii_uppercase + string.digits


@dataclass
class Room:
    """
    One table. All mutations of `state` happen while holding `lock`.

    `match_window_seq` is bumped whenever the match window is opened or
    cancelled; a timer only closes the window it was started for.
    """
    id: str
    host_id: str
    state: GameState
    spectators: Dict[str, str] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    match_timer: Optional[asyncio.Task] = None
    match_window_seq: int = 0
    bot_task: Optional[asyncio.Task] = None
    reconnect_timers: Dict[str, asyncio.Task] = field(default_factory=dict)

    def cancel_timers(self):
        """Cancel every pending timer owned by the room."""
        current = asyncio.current_task()
        tasks = [self.match_timer, self.bot_task, *self.reconnect_timers.values()]
        for task in tasks:
            if task is not None and task is not current and not task.done():
                task.cancel()
        self.match_timer = None
        self.bot_task = None
        self.reconnect_timers.clear()
        self.match_window_seq += 1

    def has_connected_humans(self) -> bool:
        if self.spectators:
            return True
        return any(p.connected and not p.is_bot for p in self.state.players)


class RoomRegistry:
    """Keeps every live room keyed by its short id."""

    def __init__(self, rules: Optional[RuleConfig] = None, rng: Optional[random.Random] = None):
        self.rules = rules or RuleConfig()
        self.rng = rng or random.Random()
        self.rooms: Dict[str, Room] = {}

    def generate_room_id(self) -> str:
        while True:
            room_id = ''.join(self.rng.choice(ROOM_ID_ALPHABET) for _ in range(ROOM_ID_LENGTH))
            if room_id not in self.rooms:
                return room_id

    def create_room(self, host_id: str, host_name: str, target_score: Optional[int] = None) -> Room:
        """Create a lobby with the host already seated."""
        room_id = self.generate_room_id()
        state = create_game(host_id, host_name, target_score, self.rules)
        room = Room(id=room_id, host_id=host_id, state=state)
        self.rooms[room_id] = room
        logger.info(f"Room {room_id} created by {host_name}")
        return room

    def get_room(self, room_id: str) -> Room:
        """
        Look up a room by id, case-insensitively.

        Raises:
            GameError: If no such room exists
        """
        room = self.rooms.get((room_id or '').strip().upper())
        if room is None:
            raise GameError(ROOM_NOT_FOUND, "Room not found.")
        return room

    def find_room(self, room_id: str) -> Optional[Room]:
        return self.rooms.get(room_id)

    def remove_room(self, room_id: str):
        room = self.rooms.pop(room_id, None)
        if room is not None:
            room.cancel_timers()
            logger.info(f"Room {room_id} closed")

    def list_open_rooms(self) -> List[dict]:
        """Lobbies that still have a free seat."""
        return [
            get_public_room_info(room.id, room.host_id, room.state)
            for room in self.rooms.values()
            if room.state.phase == PHASE_LOBBY
            and len(room.state.players) < room.state.rules.max_players
        ]
