"""Game constants and utilities"""

SUITS = ['hearts', 'diamonds', 'clubs', 'spades']
RANKS = ['A', '2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K']
FACE_RANKS = ['J', 'Q', 'K']
RED_SUITS = ['hearts', 'diamonds']
SUIT_SYMBOLS = {'hearts': '♥', 'diamonds': '♦', 'clubs': '♣', 'spades': '♠'}
DECKS_IN_SHOE = 2

AI_NAMES = ['Hiro', 'Honey Lemon', 'Rosie', 'Oreo']

# Meld types
MELD_SET = 'set'
MELD_RUN = 'run'
MIN_SET_SIZE = 3
MIN_RUN_SIZE = 4

# Game phases
PHASE_LOBBY = 'lobby'
PHASE_PLAY = 'play'
PHASE_ROUND_COMPLETE = 'round_complete'
PHASE_FINISHED = 'finished'

# Turn sub-phases (derived from turn and buy state)
TURN_AWAITING_DRAW = 'awaiting_draw'
TURN_AWAITING_MELD_OR_DISCARD = 'awaiting_meld_or_discard'
TURN_AWAITING_BUY_WINDOW = 'awaiting_buy_window'

# Bot difficulties
DIFFICULTY_EASY = 'easy'
DIFFICULTY_MEDIUM = 'medium'
DIFFICULTY_HARD = 'hard'
DIFFICULTIES = [DIFFICULTY_EASY, DIFFICULTY_MEDIUM, DIFFICULTY_HARD]

# Lifecycle events relayed by the transport
EVENT_PLAYER_JOINED = 'player_joined'
EVENT_PLAYER_LEFT = 'player_left'
EVENT_ROUND_STARTED = 'round_started'
EVENT_TURN_ADVANCED = 'turn_advanced'
EVENT_CARD_MELDED = 'card_melded'
EVENT_CARD_LAID_OFF = 'card_laid_off'
EVENT_BUY_WINDOW_OPENED = 'buy_window_opened'
EVENT_CARD_BOUGHT = 'card_bought'
EVENT_ROUND_ENDED = 'round_ended'
EVENT_GAME_COMPLETED = 'game_completed'

ROOM_CODE_LENGTH = 6


def card_value(rank: str) -> int:
    """Numeric value used for run ordering (aces are low)."""
    if rank == 'A':
        return 1
    if rank in FACE_RANKS:
        return 10
    return int(rank)


def card_score_value(rank: str) -> int:
    """Penalty points for a card left in hand at the end of a round."""
    if rank == 'A':
        return 20
    if rank in FACE_RANKS:
        return 10
    return int(rank)
