"""Game state machine: turn order, passes, end-of-game adjudication and undo."""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

from . import rules
from .board import Board, FormationChoice, Move, Piece, PieceType, Position, Side
from .config import DEFAULT_RULES, RuleConfig
from .engine import Engine
from .errors import GameAlreadyOver, IllegalMove, InvalidSelection, NothingToUndo
from .evaluator import material_scores

logger = logging.getLogger(__name__)


class EndReason(Enum):
    """Why a game ended."""

    CHECKMATE = "checkmate"
    MOVE_LIMIT = "move_limit"
    DOUBLE_PASS = "double_pass"
    LOW_MATERIAL = "low_material"


@dataclass(frozen=True)
class Outcome:
    """Final result. ``winner`` is None for a draw."""

    winner: Optional[Side]
    reason: EndReason
    cho_score: Optional[float] = None  # Set for material adjudication
    han_score: Optional[float] = None  # Includes komi

    @property
    def is_draw(self) -> bool:
        return self.winner is None


@dataclass(frozen=True)
class MoveResult:
    """Result of a move or pass."""

    captured: Optional[PieceType] = None
    game_over: Optional[Outcome] = None
    check: bool = False  # Opponent is now in check


def _no_passes() -> Dict[Side, bool]:
    return {Side.CHO: False, Side.HAN: False}


@dataclass
class GameState:
    """Everything needed to resume a game. Undo restores whole snapshots."""

    board: Board
    side_to_move: Side = Side.CHO
    move_count: int = 0
    passed: Dict[Side, bool] = field(default_factory=_no_passes)
    outcome: Optional[Outcome] = None
    last_move_capture: bool = False
    last_move_check: bool = False

    @property
    def game_over(self) -> bool:
        return self.outcome is not None

    def snapshot(self) -> "GameState":
        """Independent copy: the board and its pieces are deep-copied."""
        return replace(self, board=self.board.copy(), passed=dict(self.passed))


class Game:
    """One game of Janggi.

    Moves and passes are validated, applied, and followed by end-of-game
    evaluation as a single step. Every accepted action pushes a snapshot of
    the prior state onto ``history``.
    """

    def __init__(
        self,
        cho_formation: FormationChoice = None,
        han_formation: FormationChoice = None,
        custom_setup: Optional[Dict[str, str]] = None,
        side_to_move: Side = Side.CHO,
        rules_config: RuleConfig = DEFAULT_RULES,
    ):
        """Start a game.

        Args:
            cho_formation: Formation index (0-3) or name for CHO
            han_formation: Formation index (0-3) or name for HAN
            custom_setup: Optional square -> piece code mapping replacing the
                starting position
            side_to_move: Side to move first (CHO in a normal game)
            rules_config: Adjudication constants
        """
        board = Board(
            custom_setup=custom_setup,
            cho_formation=cho_formation,
            han_formation=han_formation,
        )
        self.state = GameState(board=board, side_to_move=side_to_move)
        self.rules = rules_config
        self.history: List[GameState] = []

    @property
    def board(self) -> Board:
        return self.state.board

    @property
    def side_to_move(self) -> Side:
        return self.state.side_to_move

    @property
    def move_count(self) -> int:
        return self.state.move_count

    @property
    def outcome(self) -> Optional[Outcome]:
        return self.state.outcome

    @property
    def game_over(self) -> bool:
        return self.state.game_over

    @property
    def can_undo(self) -> bool:
        return bool(self.history) and not self.game_over

    def _select(self, pos: Tuple[int, int]) -> Piece:
        """Piece of the side to move at ``pos``, or InvalidSelection."""
        pos = Position(*pos)
        piece = self.board.get_piece(*pos)
        if piece is None:
            raise InvalidSelection(f"No piece at {pos}")
        if piece.side != self.side_to_move:
            raise InvalidSelection(
                f"{piece} at {pos.square} does not belong to {self.side_to_move.value}"
            )
        return piece

    def _ensure_in_progress(self) -> None:
        if self.game_over:
            raise GameAlreadyOver(f"Game is over: {self.outcome}")

    def legal_moves(self, pos: Tuple[int, int]) -> List[Position]:
        """Legal destinations of the piece at ``pos`` (for move hints)."""
        piece = self._select(pos)
        if self.game_over:
            return []
        return [move.to_pos for move in rules.legal_moves(piece, self.board)]

    def all_legal_moves(self) -> List[Move]:
        """Every legal move of the side to move."""
        if self.game_over:
            return []
        return rules.all_legal_moves(self.side_to_move, self.board)

    def is_in_check(self) -> bool:
        return rules.is_in_check(self.side_to_move, self.board)

    def is_stalemate(self) -> bool:
        """Side to move is not in check but has no legal move (it must pass)."""
        if self.game_over or self.is_in_check():
            return False
        return not rules.has_legal_move(self.side_to_move, self.board)

    def material_scores(self) -> Tuple[float, float]:
        """(CHO, HAN + komi) as used for adjudication."""
        return material_scores(self.board, self.rules.komi)

    def apply_move(self, from_pos: Tuple[int, int], to_pos: Tuple[int, int]) -> MoveResult:
        """Apply a legal move for the side to move."""
        self._ensure_in_progress()
        piece = self._select(from_pos)
        move = Move.between(piece.position, Position(*to_pos))
        if move not in rules.legal_moves(piece, self.board):
            logger.debug("Rejected illegal move %s by %s", move, piece)
            raise IllegalMove(f"{piece} cannot move {move}")

        self.history.append(self.state.snapshot())
        state = self.state
        captured = state.board.move_piece(move.from_pos, move.to_pos)
        state.last_move_capture = captured is not None
        state.move_count += 1
        state.passed = _no_passes()
        state.last_move_check = rules.is_in_check(piece.side.opponent, state.board)

        outcome = self._finish_turn()
        return MoveResult(
            captured=captured.piece_type if captured is not None else None,
            game_over=outcome,
            check=state.last_move_check,
        )

    def apply_move_uci(self, uci: str) -> MoveResult:
        move = Move.from_uci(uci)
        return self.apply_move(move.from_pos, move.to_pos)

    def apply_pass(self) -> MoveResult:
        """Pass the turn. Always allowed while the game is in progress."""
        self._ensure_in_progress()
        self.history.append(self.state.snapshot())
        state = self.state
        state.passed[state.side_to_move] = True
        state.last_move_capture = False
        state.last_move_check = False
        state.move_count += 1

        outcome = self._finish_turn()
        return MoveResult(game_over=outcome)

    def undo_last(self) -> GameState:
        """Restore the snapshot taken before the last move or pass."""
        self._ensure_in_progress()
        if not self.history:
            raise NothingToUndo("No moves to undo")
        self.state = self.history.pop()
        return self.state

    def ai_choose_move(self, depth: int) -> Optional[Move]:
        """Best move for the side to move at the given search depth."""
        return Engine(depth=depth).search(self.state)

    def _finish_turn(self) -> Optional[Outcome]:
        """End triggers, then turn hand-over and checkmate detection."""
        outcome = self._check_end_triggers()
        if outcome is None:
            self.state.side_to_move = self.state.side_to_move.opponent
            outcome = self._check_checkmate()
        if outcome is not None:
            self.state.outcome = outcome
            logger.info(
                "Game over after %d moves: %s (winner: %s)",
                self.state.move_count,
                outcome.reason.value,
                outcome.winner.value if outcome.winner else "draw",
            )
        return outcome

    def _check_end_triggers(self) -> Optional[Outcome]:
        state = self.state
        board = state.board
        if state.move_count >= self.rules.max_moves:
            reason = EndReason.MOVE_LIMIT
        elif all(state.passed.values()):
            reason = EndReason.DOUBLE_PASS
        elif (
            board.material(Side.CHO) <= self.rules.low_material
            or board.material(Side.HAN) <= self.rules.low_material
        ):
            reason = EndReason.LOW_MATERIAL
        else:
            return None

        if state.last_move_capture or state.last_move_check:
            logger.debug("Material decision (%s) deferred: capture/check on last move", reason.value)
            return None
        return self._adjudicate(reason)

    def _adjudicate(self, reason: EndReason) -> Outcome:
        cho_score, han_score = self.material_scores()
        if abs(cho_score - han_score) < 1e-6:
            winner = None
        else:
            winner = Side.CHO if cho_score > han_score else Side.HAN
        return Outcome(winner, reason, cho_score, han_score)

    def _check_checkmate(self) -> Optional[Outcome]:
        side = self.state.side_to_move
        if rules.is_in_check(side, self.board) and not rules.has_legal_move(side, self.board):
            return Outcome(side.opponent, EndReason.CHECKMATE)
        return None
