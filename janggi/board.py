"""Janggi board representation."""

import copy
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple, Union

from .errors import InvalidSetup


FILES = "abcdefghi"


class Side(Enum):
    """Player sides."""

    CHO = "CHO"  # Bottom side (ranks 6-9), moves first
    HAN = "HAN"  # Top side (ranks 0-3), moves second

    @property
    def opponent(self) -> "Side":
        return Side.HAN if self is Side.CHO else Side.CHO

    @property
    def forward(self) -> int:
        """Rank step of a soldier moving forward."""
        return -1 if self is Side.CHO else 1


class PieceType(Enum):
    """Piece types."""

    KING = "KING"
    GUARD = "GUARD"
    ELEPHANT = "ELEPHANT"
    HORSE = "HORSE"
    ROOK = "ROOK"
    CANNON = "CANNON"
    PAWN = "PAWN"


PIECE_VALUES = {
    PieceType.KING: 1000,
    PieceType.ROOK: 13,
    PieceType.CANNON: 7,
    PieceType.HORSE: 5,
    PieceType.ELEPHANT: 3,
    PieceType.GUARD: 3,
    PieceType.PAWN: 2,
}

PIECE_CODES = {
    "K": PieceType.KING,
    "G": PieceType.GUARD,
    "E": PieceType.ELEPHANT,
    "H": PieceType.HORSE,
    "R": PieceType.ROOK,
    "C": PieceType.CANNON,
    "P": PieceType.PAWN,
}

# Horse/elephant order on files b, c, g, h of the back rank
FORMATIONS = {
    "마상상마": (PieceType.HORSE, PieceType.ELEPHANT, PieceType.ELEPHANT, PieceType.HORSE),
    "마상마상": (PieceType.HORSE, PieceType.ELEPHANT, PieceType.HORSE, PieceType.ELEPHANT),
    "상마마상": (PieceType.ELEPHANT, PieceType.HORSE, PieceType.HORSE, PieceType.ELEPHANT),
    "상마상마": (PieceType.ELEPHANT, PieceType.HORSE, PieceType.ELEPHANT, PieceType.HORSE),
}
FORMATION_NAMES = list(FORMATIONS)  # index 0..3
DEFAULT_FORMATION = "마상상마"

FormationChoice = Union[int, str, None]


class Position(NamedTuple):
    """A board cell: file 0-8 (a-i), rank 0-9 (1-10)."""

    file: int
    rank: int

    @property
    def square(self) -> str:
        return f"{FILES[self.file]}{self.rank + 1}"

    @classmethod
    def from_square(cls, square: str) -> "Position":
        """Parse square notation (e.g. 'a1', 'e10')."""
        if len(square) < 2 or square[0] not in FILES:
            raise InvalidSetup(f"Invalid square: {square!r}")
        try:
            rank = int(square[1:]) - 1
        except ValueError:
            raise InvalidSetup(f"Invalid square: {square!r}") from None
        if not 0 <= rank < Board.RANKS:
            raise InvalidSetup(f"Invalid square: {square!r}")
        return cls(FILES.index(square[0]), rank)


@dataclass
class Piece:
    """Represents a piece on the board.

    ``position`` is maintained by the Board mutation methods only.
    """

    side: Side
    piece_type: PieceType
    position: Optional[Position] = None

    @property
    def value(self) -> int:
        return PIECE_VALUES[self.piece_type]

    @property
    def code(self) -> str:
        """Two-letter piece code, e.g. 'hR' for a Han rook."""
        side_char = "h" if self.side == Side.HAN else "c"
        return f"{side_char}{self.piece_type.value[0]}"

    def __str__(self) -> str:
        return f"{self.side.value}_{self.piece_type.value}"


@dataclass(frozen=True)
class Move:
    """Represents a move."""

    from_file: int  # 0-8 (a-i)
    from_rank: int  # 0-9 (1-10)
    to_file: int
    to_rank: int

    @classmethod
    def between(cls, from_pos: Position, to_pos: Position) -> "Move":
        return cls(from_pos.file, from_pos.rank, to_pos.file, to_pos.rank)

    @property
    def from_pos(self) -> Position:
        return Position(self.from_file, self.from_rank)

    @property
    def to_pos(self) -> Position:
        return Position(self.to_file, self.to_rank)

    def __str__(self) -> str:
        return self.to_uci()

    def to_uci(self) -> str:
        """Convert to UCI-like notation."""
        return self.from_pos.square + self.to_pos.square

    @classmethod
    def from_uci(cls, uci: str) -> "Move":
        """Parse UCI notation ('a7a6', 'e9e10')."""
        # The second square starts at the second file letter
        split = next(
            (i for i in range(2, len(uci)) if uci[i] in FILES), None
        )
        if split is None:
            raise InvalidSetup(f"Invalid move notation: {uci!r}")
        return cls.between(
            Position.from_square(uci[:split]), Position.from_square(uci[split:])
        )


class Board:
    """Janggi board: a RANKS x FILES grid of optional pieces.

    Mutation methods keep each piece's stored position equal to the cell that
    holds it. No rule validation happens here.
    """

    FILES = 9
    RANKS = 10

    def __init__(
        self,
        custom_setup: Optional[Dict[str, str]] = None,
        cho_formation: FormationChoice = None,
        han_formation: FormationChoice = None,
        empty: bool = False,
    ):
        """Initialize the board.

        Args:
            custom_setup: Optional mapping of squares (e.g. "a1") to piece
                codes (e.g. "hR" for Han Rook). Replaces the starting position.
            cho_formation: Formation index (0-3) or name for CHO
                ("마상상마", "마상마상", "상마마상", "상마상마")
            han_formation: Formation index or name for HAN
            empty: Start with no pieces at all
        """
        self.board: List[List[Optional[Piece]]] = [
            [None for _ in range(self.FILES)] for _ in range(self.RANKS)
        ]
        if custom_setup is not None:
            self._initialize_custom_position(custom_setup)
        elif not empty:
            self._setup_side(Side.HAN, resolve_formation(han_formation))
            self._setup_side(Side.CHO, resolve_formation(cho_formation))

    def _setup_side(self, side: Side, formation: Tuple[PieceType, ...]) -> None:
        """Place one side's sixteen pieces."""
        if side == Side.HAN:
            back, palace, cannon, pawn = 0, 1, 2, 3
        else:
            back, palace, cannon, pawn = 9, 8, 7, 6

        self.place(Piece(side, PieceType.KING), Position(4, palace))
        self.place(Piece(side, PieceType.GUARD), Position(3, back))
        self.place(Piece(side, PieceType.GUARD), Position(5, back))
        self.place(Piece(side, PieceType.ROOK), Position(0, back))
        self.place(Piece(side, PieceType.ROOK), Position(8, back))
        for file, piece_type in zip((1, 2, 6, 7), formation):
            self.place(Piece(side, piece_type), Position(file, back))
        self.place(Piece(side, PieceType.CANNON), Position(1, cannon))
        self.place(Piece(side, PieceType.CANNON), Position(7, cannon))
        for file in range(0, self.FILES, 2):
            self.place(Piece(side, PieceType.PAWN), Position(file, pawn))

    def _initialize_custom_position(self, custom_setup: Dict[str, str]) -> None:
        """Initialize board with custom piece positions.

        Args:
            custom_setup: Dictionary mapping squares (e.g., "a1") to piece codes (e.g., "hR", "cK")
        """
        for square, piece_code in custom_setup.items():
            pos = Position.from_square(square)
            if len(piece_code) != 2 or piece_code[0] not in "hc" or piece_code[1] not in PIECE_CODES:
                raise InvalidSetup(f"Invalid piece code {piece_code!r} at {square}")
            side = Side.HAN if piece_code[0] == "h" else Side.CHO
            self.place(Piece(side, PIECE_CODES[piece_code[1]]), pos)

    @classmethod
    def in_bounds(cls, file: int, rank: int) -> bool:
        return 0 <= file < cls.FILES and 0 <= rank < cls.RANKS

    def get(self, pos: Position) -> Optional[Piece]:
        """Get the piece at a position (None if empty)."""
        return self.board[pos.rank][pos.file]

    def get_piece(self, file: int, rank: int) -> Optional[Piece]:
        """Get piece at given coordinates (None off the board)."""
        if 0 <= file < self.FILES and 0 <= rank < self.RANKS:
            return self.board[rank][file]
        return None

    def place(self, piece: Piece, pos: Position) -> None:
        self.board[pos.rank][pos.file] = piece
        piece.position = Position(*pos)

    def remove(self, pos: Position) -> Optional[Piece]:
        piece = self.board[pos.rank][pos.file]
        self.board[pos.rank][pos.file] = None
        if piece is not None:
            piece.position = None
        return piece

    def move_piece(self, from_pos: Position, to_pos: Position) -> Optional[Piece]:
        """Move whatever stands on from_pos to to_pos. Returns the captured piece."""
        piece = self.board[from_pos.rank][from_pos.file]
        captured = self.board[to_pos.rank][to_pos.file]
        self.board[from_pos.rank][from_pos.file] = None
        self.board[to_pos.rank][to_pos.file] = piece
        if piece is not None:
            piece.position = Position(*to_pos)
        if captured is not None:
            captured.position = None
        return captured

    def undo_move(
        self, from_pos: Position, to_pos: Position, captured: Optional[Piece]
    ) -> None:
        """Exact inverse of move_piece(from_pos, to_pos)."""
        piece = self.board[to_pos.rank][to_pos.file]
        self.board[from_pos.rank][from_pos.file] = piece
        if piece is not None:
            piece.position = Position(*from_pos)
        self.board[to_pos.rank][to_pos.file] = captured
        if captured is not None:
            captured.position = Position(*to_pos)

    @contextmanager
    def simulate(self, from_pos: Position, to_pos: Position) -> Iterator[Optional[Piece]]:
        """Apply a move for the duration of a with-block, then undo it.

        The undo runs even if the block raises or returns early.
        """
        captured = self.move_piece(from_pos, to_pos)
        try:
            yield captured
        finally:
            self.undo_move(from_pos, to_pos, captured)

    def pieces(self, side: Optional[Side] = None) -> List[Piece]:
        """Pieces in scan order (rank, then file), optionally of one side."""
        found = []
        for row in self.board:
            for piece in row:
                if piece is not None and (side is None or piece.side == side):
                    found.append(piece)
        return found

    def find_king(self, side: Side) -> Optional[Piece]:
        for piece in self.pieces(side):
            if piece.piece_type == PieceType.KING:
                return piece
        return None

    def material(self, side: Side, include_king: bool = False) -> int:
        """Sum of the side's piece values."""
        return sum(
            piece.value
            for piece in self.pieces(side)
            if include_king or piece.piece_type != PieceType.KING
        )

    def copy(self) -> "Board":
        return copy.deepcopy(self)

    def to_codes(self) -> List[List[Optional[str]]]:
        """Grid of piece codes, indexed [rank][file]."""
        return [[piece.code if piece else None for piece in row] for row in self.board]

    def __str__(self) -> str:
        lines = []
        for rank in range(self.RANKS - 1, -1, -1):
            cells = [piece.code if piece else " ." for piece in self.board[rank]]
            lines.append(f"{rank + 1:>2} " + " ".join(cells))
        lines.append("    " + "  ".join(FILES))
        return "\n".join(lines)


def resolve_formation(formation: FormationChoice) -> Tuple[PieceType, ...]:
    """Look up a formation by index (0-3) or Korean name; None gives the default."""
    if formation is None:
        return FORMATIONS[DEFAULT_FORMATION]
    if isinstance(formation, int) and not isinstance(formation, bool):
        if 0 <= formation < len(FORMATION_NAMES):
            return FORMATIONS[FORMATION_NAMES[formation]]
    elif formation in FORMATIONS:
        return FORMATIONS[formation]
    raise InvalidSetup(f"Unknown formation: {formation!r}")
