"""Game constants and card taxonomy"""

from typing import Dict, List

# Card kinds
KIND_BASIC = 'basic'
KIND_COMMAND = 'command'
KIND_POWER = 'power'

COLORS: List[str] = ['yellow', 'blue', 'red']
SYMBOLS: List[str] = ['galaxy', 'moon', 'cloud', 'sun', 'star', 'lightning']

COMMAND_WASP = 'wasp'
COMMAND_FROG = 'frog'
COMMAND_CRAB = 'crab'
COMMANDS: List[str] = [COMMAND_WASP, COMMAND_FROG, COMMAND_CRAB]

POWER_DRAGON = 'dragon'
POWER_PEACOCK = 'peacock'
POWERS: List[str] = [POWER_DRAGON, POWER_PEACOCK]
POWER_PAIRS: List[int] = [1, 2]

COPIES_PER_CARD = 2
DECK_SIZE = 62

# Phases
PHASE_LOBBY = 'lobby'
PHASE_PLAYING = 'playing'
PHASE_ROUND_OVER = 'round_over'
PHASE_GAME_OVER = 'game_over'

# Turn direction
DIRECTION_CW = 'cw'
DIRECTION_CCW = 'ccw'

# Point scales, keyed by RuleConfig.point_scale
POINT_SCALE_STANDARD = 'standard'
POINT_SCALE_COMPACT = 'compact'

POINT_SCALES: Dict[str, Dict[str, int]] = {
    POINT_SCALE_STANDARD: {
        KIND_BASIC: 5,
        COMMAND_WASP: 15,
        COMMAND_FROG: 15,
        COMMAND_CRAB: 15,
        KIND_POWER: 25,
    },
    POINT_SCALE_COMPACT: {
        KIND_BASIC: 1,
        COMMAND_WASP: 3,
        COMMAND_FROG: 2,
        COMMAND_CRAB: 2,
        KIND_POWER: 5,
    },
}

WASP_DRAW = 2
DOUBLE_WASP_DRAW = 4
MATCH_PENALTY_DRAW = 1
LAST_CARD_PENALTY_DRAW = 1

ROOM_ID_LENGTH = 5

# Error codes
ERROR_NOT_YOUR_TURN = 'NOT_YOUR_TURN'
ERROR_WRONG_PHASE = 'WRONG_PHASE'
ERROR_DECLARATION_PENDING = 'DECLARATION_PENDING'
ERROR_NO_DECLARATION = 'NO_DECLARATION'
ERROR_OWNERSHIP = 'OWNERSHIP'
ERROR_ILLEGAL_PLAY = 'ILLEGAL_PLAY'
ERROR_ILLEGAL_DOUBLE = 'ILLEGAL_DOUBLE'
ERROR_DOUBLE_GOING_OUT = 'DOUBLE_GOING_OUT'
ERROR_ALREADY_DREW = 'ALREADY_DREW'
ERROR_MUST_DRAW = 'MUST_DRAW'
ERROR_NO_MATCH = 'NO_MATCH'
ERROR_MATCH_WINDOW_CLOSED = 'MATCH_WINDOW_CLOSED'
ERROR_ACTION_NOT_ALLOWED = 'ACTION_NOT_ALLOWED'
ERROR_NOT_ENOUGH_PLAYERS = 'NOT_ENOUGH_PLAYERS'
ERROR_ROOM_FULL = 'ROOM_FULL'
ERROR_NAME_TAKEN = 'NAME_TAKEN'
ERROR_PLAYER_NOT_FOUND = 'PLAYER_NOT_FOUND'
