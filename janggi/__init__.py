"""Korean Janggi rules engine and minimax AI."""

from .board import (
    Board, Move, Side, PieceType, Piece, Position,
    PIECE_VALUES, FORMATIONS, FORMATION_NAMES, DEFAULT_FORMATION,
)
from .rules import (
    pseudo_legal_moves, is_in_check, legal_moves, all_legal_moves,
    is_in_palace,
)
from .engine import Engine, choose_move
from .evaluator import MaterialEvaluator, material_scores
from .game import Game, GameState, MoveResult, Outcome, EndReason
from .config import RuleConfig, DEFAULT_RULES, depth_for_difficulty, get_default_depth
from .errors import (
    JanggiError, InvalidSetup, InvalidSelection, IllegalMove,
    GameAlreadyOver, NothingToUndo, InvalidSearchState,
)

__all__ = [
    # Board
    'Board', 'Move', 'Side', 'PieceType', 'Piece', 'Position',
    'PIECE_VALUES', 'FORMATIONS', 'FORMATION_NAMES', 'DEFAULT_FORMATION',
    # Rules
    'pseudo_legal_moves', 'is_in_check', 'legal_moves', 'all_legal_moves',
    'is_in_palace',
    # Search
    'Engine', 'choose_move', 'MaterialEvaluator', 'material_scores',
    # Game
    'Game', 'GameState', 'MoveResult', 'Outcome', 'EndReason',
    # Configuration
    'RuleConfig', 'DEFAULT_RULES', 'depth_for_difficulty', 'get_default_depth',
    # Errors
    'JanggiError', 'InvalidSetup', 'InvalidSelection', 'IllegalMove',
    'GameAlreadyOver', 'NothingToUndo', 'InvalidSearchState',
]
