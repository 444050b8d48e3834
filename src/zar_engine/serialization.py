"""
State serialization and per-observer redaction.
"""

from typing import Any, Dict, Iterable, Optional, Tuple

from .models import GameState, Player


def build_client_view(state: GameState, observer_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Redact game state for one observer.

    Args:
        state: Game state to redact
        observer_id: ID of the viewer; a seated player sees their own hand,
            anyone else (spectators included) sees counts only

    Returns:
        Redacted state dictionary safe for JSON transmission
    """
    top = state.top_card
    seated = state.get_player(observer_id) is not None if observer_id else False

    view = {
        "phase": state.phase,
        "version": state.version,
        "round_number": state.round_number,
        "players": [],
        "draw_pile_count": len(state.draw_pile),
        "top_card": top.to_dict() if top else None,
        "current_player_index": state.current_player_index,
        "direction": state.direction,
        "pending_draw_count": state.pending_draw_count,
        "declared_symbol": state.declared_symbol,
        "declared_color": state.declared_color,
        "waiting_for_declaration": state.waiting_for_declaration,
        "drawn_this_turn": state.drawn_this_turn,
        "match_window_open": state.match_window_open,
        "target_score": state.target_score,
        "round_winner_id": state.round_winner_id,
        "is_spectator": not seated,
    }

    for player in state.players:
        client_player = {
            "id": player.id,
            "name": player.name,
            "hand_count": len(player.hand),
            "score": player.score,
            "connected": player.connected,
            "announced_last_card": player.announced_last_card,
            "is_bot": player.is_bot,
        }

        # Show full hand only to its owner
        if seated and player.id == observer_id:
            client_player["hand"] = [card.to_dict() for card in player.hand]

        view["players"].append(client_player)

    return view


def serialize_player_for_list(player: Player) -> Dict[str, Any]:
    """Serialize player for lobby player list."""
    return {
        "id": player.id,
        "name": player.name,
        "is_bot": player.is_bot,
        "connected": player.connected,
    }


def build_room_update(
    room_id: str,
    host_id: str,
    state: GameState,
    spectators: Iterable[Tuple[str, str]]
) -> Dict[str, Any]:
    """Membership summary broadcast after joins, leaves and bot fills."""
    return {
        "room_id": room_id,
        "host_id": host_id,
        "players": [serialize_player_for_list(p) for p in state.players],
        "spectators": [{"id": sid, "name": name} for sid, name in spectators],
        "phase": state.phase,
    }


def get_public_room_info(room_id: str, host_id: str, state: GameState) -> Dict[str, Any]:
    """Get public information about a room for listings."""
    host = state.get_player(host_id)
    return {
        "room_id": room_id,
        "host_name": host.name if host else "Host",
        "player_count": len(state.players),
    }
