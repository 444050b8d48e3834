# src/zar_engine/errors.py

class GameError(Exception):
    """Room-level error reported back to the client as an error event."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")

# Room-level error codes
ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
NOT_HOST = "NOT_HOST"
NOT_IN_ROOM = "NOT_IN_ROOM"
ACTION_NOT_ALLOWED = "ACTION_NOT_ALLOWED"
