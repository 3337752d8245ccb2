# engine_py/src/shanghai_engine/errors.py

class GameError(Exception):
    """Base exception for game-related errors."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")

# Specific error codes
ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
ROOM_FULL = "ROOM_FULL"
ROOM_ALREADY_STARTED = "ROOM_ALREADY_STARTED"
NAME_TAKEN = "NAME_TAKEN"
NOT_HOST = "NOT_HOST"
INSUFFICIENT_PLAYERS = "INSUFFICIENT_PLAYERS"
PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
GAME_NOT_IN_PROGRESS = "GAME_NOT_IN_PROGRESS"
NOT_YOUR_TURN = "NOT_YOUR_TURN"
ALREADY_DRAWN = "ALREADY_DRAWN"
MUST_DRAW_FIRST = "MUST_DRAW_FIRST"
NO_CARDS_AVAILABLE = "NO_CARDS_AVAILABLE"
DISCARD_EMPTY = "DISCARD_EMPTY"
INVALID_CARD_INDEX = "INVALID_CARD_INDEX"
INVALID_MELD = "INVALID_MELD"
MUST_KEEP_DISCARD = "MUST_KEEP_DISCARD"
INSUFFICIENT_MELD_REQUIREMENT = "INSUFFICIENT_MELD_REQUIREMENT"
NOT_GONE_DOWN = "NOT_GONE_DOWN"
INVALID_LAY_OFF_TARGET = "INVALID_LAY_OFF_TARGET"
INVALID_LAY_OFF = "INVALID_LAY_OFF"
BUY_WINDOW_OPEN = "BUY_WINDOW_OPEN"
NO_BUY_WINDOW = "NO_BUY_WINDOW"
NOT_ELIGIBLE_TO_BUY = "NOT_ELIGIBLE_TO_BUY"
NO_BUYS_LEFT = "NO_BUYS_LEFT"
INVALID_INPUT = "INVALID_INPUT"
INTERNAL_ERROR = "INTERNAL_ERROR"

# Helper function to raise common errors
def raise_error(code: str, message: str):
    raise GameError(code, message)
