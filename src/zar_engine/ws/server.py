"""
WebSocket room service for ZAR.

Each connection gets a short id that doubles as its seat id. All mutations of
a room happen while holding that room's lock; timers (match window, bot turns,
reconnect grace) are asyncio tasks that take the same lock when they fire.
"""

import asyncio
import logging
import random
import uuid
from typing import Any, Dict, List, Optional

import orjson
from fastapi import WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from ..bots import HeuristicBot
from ..constants import PHASE_LOBBY, PHASE_PLAYING
from ..engine import (
    ActionResult, add_bots, announce_last_card, bots_needed,
    challenge_last_card, close_match_window, declare_color, declare_symbol,
    disconnect_player, draw_card, expire_player, join_game, match_card,
    open_match_window, pass_turn, play_card, play_double, reconnect_player,
    start_game, start_next_round,
)
from ..errors import ACTION_NOT_ALLOWED, NOT_HOST, NOT_IN_ROOM, ROOM_NOT_FOUND, GameError
from ..rooms import Room, RoomRegistry
from ..rules import RuleConfig
from ..serialization import build_client_view, build_room_update
from .events import (
    ErrorCode, EventType, LastCardAnnouncedEvent, LastCardChallengeEvent,
    RoomCreatedEvent, RoomJoinedEvent, RoomUpdateEvent, RoomsAvailableEvent,
    SuggestBotsEvent, create_error_event, create_game_state_event,
    parse_inbound_event,
)

logger = logging.getLogger(__name__)

TURN_INTENTS = {
    EventType.PLAY_CARD,
    EventType.PLAY_DOUBLE,
    EventType.DECLARE_SYMBOL,
    EventType.DECLARE_COLOR,
    EventType.DRAW_CARD,
    EventType.PASS,
    EventType.MATCH_CARD,
}

# Intents after which other players get a chance to match the top card
OPENS_MATCH_WINDOW = {'play_card', 'play_double', 'declare_symbol', 'declare_color', 'match_card'}


def _clean_name(name: str) -> str:
    return (name or '').strip() or 'Player'


class ConnectionManager:
    """Tracks open sockets and which room each one sits in."""

    def __init__(self):
        self.active_connections: Dict[str, WebSocket] = {}
        self.connection_rooms: Dict[str, str] = {}

    async def connect(self, websocket: WebSocket, connection_id: str):
        await websocket.accept()
        self.active_connections[connection_id] = websocket
        logger.info(f"Connection {connection_id} opened")

    def disconnect(self, connection_id: str) -> Optional[str]:
        """Forget a connection and return the room it was in, if any."""
        self.active_connections.pop(connection_id, None)
        room_id = self.connection_rooms.pop(connection_id, None)
        logger.info(f"Connection {connection_id} closed")
        return room_id

    def add_to_room(self, connection_id: str, room_id: str):
        self.connection_rooms[connection_id] = room_id

    def room_of(self, connection_id: str) -> Optional[str]:
        return self.connection_rooms.get(connection_id)

    def members(self, room_id: str) -> List[str]:
        return [cid for cid, rid in self.connection_rooms.items() if rid == room_id]

    async def send(self, connection_id: str, message: Any):
        websocket = self.active_connections.get(connection_id)
        if websocket is None:
            return
        if isinstance(message, BaseModel):
            message = message.model_dump(mode='json')
        try:
            await websocket.send_text(orjson.dumps(message).decode())
        except Exception as e:
            logger.error(f"Error sending message to {connection_id}: {e}")


class GameWebSocketManager:
    """Routes client intents to the engine and drives timers and bots."""

    def __init__(self, rules: Optional[RuleConfig] = None, rng: Optional[random.Random] = None):
        self.rules = rules or RuleConfig()
        self.rng = rng or random.Random()
        self.registry = RoomRegistry(self.rules, self.rng)
        self.connection_manager = ConnectionManager()
        self.handlers = {
            EventType.CREATE_ROOM: self.handle_create_room,
            EventType.JOIN_ROOM: self.handle_join_room,
            EventType.START_GAME: self.handle_start_game,
            EventType.CONFIRM_BOTS: self.handle_confirm_bots,
            EventType.ANNOUNCE_LAST_CARD: self.handle_announce_last_card,
            EventType.CHALLENGE_LAST_CARD: self.handle_challenge_last_card,
            EventType.NEXT_ROUND: self.handle_next_round,
            EventType.GET_ROOMS: self.handle_get_rooms,
        }
        for event_type in TURN_INTENTS:
            self.handlers[event_type] = self.handle_turn_intent

    # Connection lifecycle -------------------------------------------------

    async def handle_websocket(self, websocket: WebSocket):
        connection_id = uuid.uuid4().hex[:8]
        await self.connection_manager.connect(websocket, connection_id)

        try:
            while True:
                raw = await websocket.receive_text()
                await self.handle_message(connection_id, raw)
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected for {connection_id}")
        except Exception as e:
            logger.error(f"WebSocket error for {connection_id}: {e}")
        finally:
            await self.handle_disconnect(connection_id)

    async def handle_message(self, connection_id: str, raw: str):
        """Parse one frame, run it, and report failures to the sender only."""
        try:
            event = parse_inbound_event(orjson.loads(raw))
            await self.handlers[event.type](connection_id, event)
        except GameError as e:
            await self.send_error(connection_id, e.code, e.message)
        except ValueError as e:
            await self.send_error(connection_id, ErrorCode.INVALID_EVENT, str(e))
        except Exception:
            logger.exception(f"Error handling message from {connection_id}")
            await self.send_error(connection_id, ErrorCode.INTERNAL, "Internal server error")

    async def handle_disconnect(self, connection_id: str):
        room_id = self.connection_manager.disconnect(connection_id)
        if room_id is None:
            return
        room = self.registry.find_room(room_id)
        if room is None:
            logger.warning(f"Connection {connection_id} left room {room_id}, which no longer exists")
            return

        async with room.lock:
            if connection_id in room.spectators:
                del room.spectators[connection_id]
                await self.broadcast_room_update(room)
            elif room.state.get_player(connection_id) is not None:
                await self._disconnect_seat(room, connection_id)
            self._close_if_abandoned(room)

    async def _disconnect_seat(self, room: Room, player_id: str):
        result = disconnect_player(room.state, player_id, self.rng)
        if not result.success:
            return
        room.state = result.state
        if room.host_id == player_id:
            self._reassign_host(room)

        if not result.data['removed']:
            logger.info(f"Player {player_id} in room {room.id} has "
                        f"{room.state.rules.reconnect_grace_seconds}s to reconnect")
            room.reconnect_timers[player_id] = asyncio.create_task(
                self._expire_later(room, player_id)
            )

        await self.broadcast_room_update(room)
        if room.state.phase != PHASE_LOBBY:
            await self.broadcast_state(room)
            self._ensure_bot_scheduled(room)

    async def _expire_later(self, room: Room, player_id: str):
        await asyncio.sleep(room.state.rules.reconnect_grace_seconds)
        async with room.lock:
            room.reconnect_timers.pop(player_id, None)
            result = expire_player(room.state, player_id)
            if not result.success:
                return
            room.state = result.state
            logger.info(f"Player {player_id} removed from room {room.id} after grace period")
            if room.host_id == player_id:
                self._reassign_host(room)

            await self.broadcast_room_update(room)
            await self.broadcast_state(room)
            if room.state.phase == PHASE_PLAYING:
                self._ensure_bot_scheduled(room)
            else:
                self._cancel_match_timer(room)
                self._cancel_bot(room)
            self._close_if_abandoned(room)

    def _reassign_host(self, room: Room):
        for player in room.state.players:
            if player.connected and not player.is_bot:
                room.host_id = player.id
                logger.info(f"Host of room {room.id} passed to {player.name}")
                return

    def _close_if_abandoned(self, room: Room):
        if room.has_connected_humans() or room.reconnect_timers:
            return
        self.registry.remove_room(room.id)

    # Lobby ----------------------------------------------------------------

    async def handle_create_room(self, connection_id: str, event):
        if self.connection_manager.room_of(connection_id):
            raise GameError(ACTION_NOT_ALLOWED, "Already in a room.")

        room = self.registry.create_room(connection_id, _clean_name(event.player_name), event.target_score)
        self.connection_manager.add_to_room(connection_id, room.id)
        await self.send(connection_id, RoomCreatedEvent(room_id=room.id))
        await self.broadcast_room_update(room)

    async def handle_join_room(self, connection_id: str, event):
        """
        Join a room by id.

        In the lobby the connection takes a new seat. Once a game is running,
        a name matching a disconnected human reclaims that seat; anyone else
        watches as a spectator.
        """
        if self.connection_manager.room_of(connection_id):
            raise GameError(ACTION_NOT_ALLOWED, "Already in a room.")

        room = self.registry.get_room(event.room_id)
        name = _clean_name(event.player_name)

        async with room.lock:
            spectator = False
            if room.state.phase == PHASE_LOBBY:
                self._apply(room, join_game(room.state, connection_id, name))
            else:
                seat = next(
                    (p for p in room.state.players
                     if p.name == name and not p.connected and not p.is_bot),
                    None
                )
                if seat is not None:
                    self._reclaim_seat(room, seat.id, connection_id)
                else:
                    room.spectators[connection_id] = name
                    spectator = True

            self.connection_manager.add_to_room(connection_id, room.id)
            logger.info(f"{name} joined room {room.id}{' as spectator' if spectator else ''}")
            await self.send(connection_id, RoomJoinedEvent(
                room_id=room.id, player_id=connection_id, spectator=spectator
            ))
            await self.broadcast_room_update(room)
            if room.state.phase != PHASE_LOBBY:
                await self.broadcast_state(room)
                self._ensure_bot_scheduled(room)

    def _reclaim_seat(self, room: Room, old_id: str, new_id: str):
        timer = room.reconnect_timers.pop(old_id, None)
        if timer is not None:
            timer.cancel()
        self._apply(room, reconnect_player(room.state, old_id, new_id))

        host = room.state.get_player(room.host_id)
        if room.host_id == old_id or host is None or not host.connected:
            room.host_id = new_id
        logger.info(f"Seat {old_id} in room {room.id} reclaimed by {new_id}")

    async def handle_start_game(self, connection_id: str, event):
        room = self._room_of(connection_id)
        async with room.lock:
            self._require_host(room, connection_id)
            needed = bots_needed(room.state) if room.state.phase == PHASE_LOBBY else 0
            if needed > 0:
                await self.send(connection_id, SuggestBotsEvent(
                    current_count=len(room.state.players), bots_needed=needed
                ))
                return
            await self._start(room)

    async def handle_confirm_bots(self, connection_id: str, event):
        room = self._room_of(connection_id)
        async with room.lock:
            self._require_host(room, connection_id)
            if event.confirm:
                self._apply(room, add_bots(room.state, bots_needed(room.state)))
                await self.broadcast_room_update(room)
            await self._start(room)

    async def _start(self, room: Room):
        self._apply(room, start_game(room.state, self.rng))
        logger.info(f"Room {room.id} started with {len(room.state.players)} players")
        await self.broadcast_room_update(room)
        await self.broadcast_state(room)
        self._schedule_bot(room)

    async def handle_next_round(self, connection_id: str, event):
        room = self._room_of(connection_id)
        async with room.lock:
            self._require_host(room, connection_id)
            self._apply(room, start_next_round(room.state, self.rng))
            await self.broadcast_state(room)
            self._schedule_bot(room)

    async def handle_get_rooms(self, connection_id: str, event):
        await self.send(connection_id, RoomsAvailableEvent(rooms=self.registry.list_open_rooms()))

    # Game intents ---------------------------------------------------------

    async def handle_turn_intent(self, connection_id: str, event):
        room = self._room_of(connection_id)
        async with room.lock:
            player_id = self._seat_of(room, connection_id)
            intent = event.type.value
            result = self._apply_intent(room, player_id, intent, event.model_dump(exclude={'type'}))
            self._apply(room, result)
            await self._after_intent(room, player_id, intent, result)

    def _apply_intent(self, room: Room, player_id: str, intent: str, data: Dict[str, Any]) -> ActionResult:
        """Run one turn intent against the room state. Shared by humans and bots."""
        state = room.state
        if intent == 'play_card':
            return play_card(state, player_id, data['card_id'])
        if intent == 'play_double':
            return play_double(state, player_id, data['card_id1'], data['card_id2'])
        if intent == 'declare_symbol':
            return declare_symbol(state, player_id, data['symbol'])
        if intent == 'declare_color':
            return declare_color(state, player_id, data['color'])
        if intent == 'draw_card':
            return draw_card(state, player_id, self.rng)
        if intent == 'pass':
            return pass_turn(state, player_id)
        if intent == 'match_card':
            return match_card(state, player_id, data['card_id'], self.rng)
        raise ValueError(f"Unknown intent: {intent}")

    async def _after_intent(self, room: Room, player_id: str, intent: str, result: ActionResult):
        """Broadcast an accepted intent and start whatever timers follow from it."""
        if intent == 'match_card':
            self._cancel_match_timer(room)
            logger.info(f"{player_id} matched out of turn in room {room.id}, "
                        f"interrupting {result.data.get('interrupted_id')}")

        await self._auto_announce(room, player_id)

        if room.state.phase != PHASE_PLAYING:
            self._cancel_match_timer(room)
            self._cancel_bot(room)
            logger.info(f"Room {room.id} round over, winner {room.state.round_winner_id}")
            await self.broadcast_state(room)
            return

        if intent in OPENS_MATCH_WINDOW and not room.state.waiting_for_declaration:
            self._open_match_window(room)

        await self.broadcast_state(room)
        self._schedule_bot(room, player_id, intent)

    async def _auto_announce(self, room: Room, player_id: str):
        player = room.state.get_player(player_id)
        if (player is None or not player.is_bot or len(player.hand) != 1
                or player.announced_last_card):
            return
        result = announce_last_card(room.state, player_id)
        if result.success:
            room.state = result.state
            await self.broadcast(room, LastCardAnnouncedEvent(player_name=player.name))

    async def handle_announce_last_card(self, connection_id: str, event):
        room = self._room_of(connection_id)
        async with room.lock:
            player_id = self._seat_of(room, connection_id)
            self._apply(room, announce_last_card(room.state, player_id))
            player = room.state.get_player(player_id)
            await self.broadcast(room, LastCardAnnouncedEvent(player_name=player.name))
            await self.broadcast_state(room)

    async def handle_challenge_last_card(self, connection_id: str, event):
        room = self._room_of(connection_id)
        async with room.lock:
            player_id = self._seat_of(room, connection_id)
            self._apply(room, challenge_last_card(
                room.state, player_id, event.target_player_id, self.rng
            ))
            challenger = room.state.get_player(player_id)
            target = room.state.get_player(event.target_player_id)
            await self.broadcast(room, LastCardChallengeEvent(
                challenger_name=challenger.name, target_name=target.name
            ))
            await self.broadcast_state(room)

    # Match window ---------------------------------------------------------

    def _open_match_window(self, room: Room):
        self._cancel_match_timer(room)
        room.state = open_match_window(room.state)
        seq = room.match_window_seq
        room.match_timer = asyncio.create_task(self._close_match_window_later(room, seq))

    def _cancel_match_timer(self, room: Room):
        room.match_window_seq += 1
        timer = room.match_timer
        room.match_timer = None
        if timer is not None and timer is not asyncio.current_task() and not timer.done():
            timer.cancel()

    async def _close_match_window_later(self, room: Room, seq: int):
        await asyncio.sleep(room.state.rules.match_window_seconds)
        async with room.lock:
            if seq != room.match_window_seq or not room.state.match_window_open:
                logger.debug(f"Stale match window timer in room {room.id}")
                return
            room.match_timer = None
            room.state = close_match_window(room.state)
            await self.broadcast_state(room)
            self._schedule_bot(room)

    # Bots -----------------------------------------------------------------

    def _cancel_bot(self, room: Room):
        task = room.bot_task
        room.bot_task = None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

    def _ensure_bot_scheduled(self, room: Room):
        if room.bot_task is None or room.bot_task.done():
            self._schedule_bot(room)

    def _schedule_bot(self, room: Room, last_actor: Optional[str] = None, last_intent: Optional[str] = None):
        """Start a delayed bot turn if a bot is up and nothing else is pending."""
        self._cancel_bot(room)
        state = room.state
        if state.phase != PHASE_PLAYING or state.match_window_open:
            return
        current = state.current_player
        if current is None or not current.is_bot:
            return

        rules = state.rules
        if current.id != last_actor:
            delay = rules.bot_first_action_delay
        elif last_intent == 'draw_card':
            delay = rules.bot_draw_delay
        else:
            delay = rules.bot_chain_delay
        room.bot_task = asyncio.create_task(self._run_bot(room, current.id, delay))

    async def _run_bot(self, room: Room, bot_id: str, delay: float):
        await asyncio.sleep(delay)
        async with room.lock:
            if room.bot_task is asyncio.current_task():
                room.bot_task = None
            if self.registry.find_room(room.id) is not room:
                return
            if room.state.phase != PHASE_PLAYING or room.state.match_window_open:
                return

            action = HeuristicBot(bot_id, self.rng).choose_action(room.state)
            if action is None:
                return

            result = self._apply_intent(room, bot_id, action.type, action.data)
            if not result.success:
                logger.error(f"Bot {bot_id} in room {room.id} made a rejected move "
                             f"{action!r}: {result.error_message}")
                return
            room.state = result.state
            await self._after_intent(room, bot_id, action.type, result)

    # Helpers --------------------------------------------------------------

    def _room_of(self, connection_id: str) -> Room:
        room_id = self.connection_manager.room_of(connection_id)
        if room_id is None:
            raise GameError(NOT_IN_ROOM, "You are not in a room.")
        room = self.registry.find_room(room_id)
        if room is None:
            raise GameError(ROOM_NOT_FOUND, "Room not found.")
        return room

    def _seat_of(self, room: Room, connection_id: str) -> str:
        if connection_id in room.spectators:
            raise GameError(ACTION_NOT_ALLOWED, "Spectators cannot act.")
        if room.state.get_player(connection_id) is None:
            raise GameError(NOT_IN_ROOM, "You are not seated in this room.")
        return connection_id

    def _require_host(self, room: Room, connection_id: str):
        if room.host_id != connection_id:
            raise GameError(NOT_HOST, "Only the host can do that.")

    def _apply(self, room: Room, result: ActionResult):
        """Commit a successful result to the room or raise its error."""
        if not result.success:
            raise GameError(result.error_code, result.error_message)
        room.state = result.state

    async def send(self, connection_id: str, event: BaseModel):
        await self.connection_manager.send(connection_id, event)

    async def send_error(self, connection_id: str, code, message: str):
        await self.send(connection_id, create_error_event(code, message))

    async def broadcast(self, room: Room, event: BaseModel):
        for connection_id in self.connection_manager.members(room.id):
            await self.send(connection_id, event)

    async def broadcast_room_update(self, room: Room):
        update = build_room_update(room.id, room.host_id, room.state, room.spectators.items())
        await self.broadcast(room, RoomUpdateEvent(**update))

    async def broadcast_state(self, room: Room):
        """Send every member their own redacted view."""
        for connection_id in self.connection_manager.members(room.id):
            view = build_client_view(room.state, connection_id)
            await self.send(connection_id, create_game_state_event(view))


# Global instance
game_manager = GameWebSocketManager()
