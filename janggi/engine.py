"""Janggi AI engine with minimax search."""

import logging
from typing import TYPE_CHECKING, List, Optional

from . import rules
from .board import Board, Move, Side
from .errors import InvalidSearchState
from .evaluator import MaterialEvaluator

if TYPE_CHECKING:
    from .game import GameState

logger = logging.getLogger(__name__)

MATE_SCORE = 10000.0


class Engine:
    """Fixed-depth minimax engine over the shared game board.

    The search simulates and undoes moves in place; the board is back in its
    original state whenever ``search`` returns or raises. Not reentrant: run
    at most one search per board at a time.
    """

    def __init__(self, depth: int = 3, alpha_beta: bool = True):
        """Initialize engine.

        Args:
            depth: Search depth for minimax (plies)
            alpha_beta: Prune with alpha-beta. Disabling it gives plain
                minimax, which returns the same move more slowly.
        """
        self.depth = depth
        self.alpha_beta = alpha_beta
        self.evaluator = MaterialEvaluator()
        self.nodes_searched = 0
        self._root_side = Side.CHO

    def search(self, state: "GameState") -> Optional[Move]:
        """Search for the best move of the side to move.

        Returns None if that side has no legal move.
        """
        if self.depth <= 0:
            raise InvalidSearchState(f"Search depth must be positive, got {self.depth}")
        if state.game_over:
            raise InvalidSearchState("Cannot search a finished game")

        self.nodes_searched = 0
        self._root_side = state.side_to_move
        board = state.board

        best_move = None
        best_value = float("-inf")
        for move in self._all_moves(board, self._root_side):
            with board.simulate(move.from_pos, move.to_pos):
                value = self._minimax(
                    board, self.depth - 1, float("-inf"), float("inf"), False
                )
            if value > best_value:
                best_value = value
                best_move = move

        logger.debug(
            "depth=%d side=%s best=%s value=%s nodes=%d",
            self.depth,
            self._root_side.value,
            best_move,
            best_value,
            self.nodes_searched,
        )
        return best_move

    def _all_moves(self, board: Board, side: Side) -> List[Move]:
        return rules.all_legal_moves(side, board)

    def _minimax(
        self,
        board: Board,
        depth: int,
        alpha: float,
        beta: float,
        maximizing: bool
    ) -> float:
        """Minimax algorithm with alpha-beta pruning."""
        self.nodes_searched += 1

        if depth == 0:
            return self._evaluate(board)

        side = self._root_side if maximizing else self._root_side.opponent
        moves = self._all_moves(board, side)
        if not moves:
            # Checkmate scores as a forced mate, stalemate as a draw
            if rules.is_in_check(side, board):
                return -MATE_SCORE if maximizing else MATE_SCORE
            return 0.0

        if maximizing:
            max_eval = float("-inf")
            for move in moves:
                with board.simulate(move.from_pos, move.to_pos):
                    eval_score = self._minimax(board, depth - 1, alpha, beta, False)
                max_eval = max(max_eval, eval_score)
                if self.alpha_beta:
                    alpha = max(alpha, max_eval)
                    if beta <= alpha:
                        break
            return max_eval
        else:
            min_eval = float("inf")
            for move in moves:
                with board.simulate(move.from_pos, move.to_pos):
                    eval_score = self._minimax(board, depth - 1, alpha, beta, True)
                min_eval = min(min_eval, eval_score)
                if self.alpha_beta:
                    beta = min(beta, min_eval)
                    if beta <= alpha:
                        break
            return min_eval

    def _evaluate(self, board: Board) -> float:
        """Evaluate board position from the searching side's point of view."""
        return self.evaluator.evaluate(board, self._root_side)


def choose_move(state: "GameState", depth: int) -> Optional[Move]:
    """Best move for the side to move in ``state`` at a fixed depth."""
    return Engine(depth=depth).search(state)
