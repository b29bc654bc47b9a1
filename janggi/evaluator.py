"""Position evaluation and material adjudication."""

from typing import Tuple

from .board import Board, PIECE_VALUES, Side


class MaterialEvaluator:
    """Material-only evaluator - optimized for speed.

    No positional or king-safety terms; the search handles terminal states.
    """

    PIECE_VALUES = PIECE_VALUES

    @staticmethod
    def evaluate(board: Board, side: Side) -> float:
        """Own material minus opponent material, General included."""
        score = 0
        for row in board.board:
            for piece in row:  # Direct access (faster)
                if piece is None:
                    continue
                value = MaterialEvaluator.PIECE_VALUES[piece.piece_type]
                if piece.side == side:
                    score += value
                else:
                    score -= value
        return score


def material_scores(board: Board, komi: float) -> Tuple[float, float]:
    """Adjudication scores (CHO, HAN + komi), Generals excluded."""
    return float(board.material(Side.CHO)), board.material(Side.HAN) + komi
