"""
WebSocket transport and room service for ZAR.
"""

from .server import ConnectionManager, GameWebSocketManager, game_manager

__all__ = ["ConnectionManager", "GameWebSocketManager", "game_manager"]
