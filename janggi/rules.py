"""Move generation, check detection and legality filtering.

Coordinates follow the board: file 0-8, rank 0-9, HAN palace on ranks 0-2,
CHO palace on ranks 7-9. Every function here reads the board; the only
mutation is the simulate/undo pair inside ``legal_moves``, which always
restores the board before returning.
"""

from typing import List

from .board import Board, Move, Piece, PieceType, Position, Side


ORTHOGONAL_DIRECTIONS = [(1, 0), (-1, 0), (0, 1), (0, -1)]
DIAGONAL_DIRECTIONS = [(1, 1), (1, -1), (-1, 1), (-1, -1)]

# (file step, rank step, leg file, leg rank)
HORSE_PATTERNS = [
    (1, 2, 0, 1), (-1, 2, 0, 1),
    (1, -2, 0, -1), (-1, -2, 0, -1),
    (2, 1, 1, 0), (2, -1, 1, 0),
    (-2, 1, -1, 0), (-2, -1, -1, 0),
]

# (file step, rank step, first leg, second leg)
ELEPHANT_PATTERNS = [
    (2, 3, (0, 1), (1, 2)), (-2, 3, (0, 1), (-1, 2)),
    (2, -3, (0, -1), (1, -2)), (-2, -3, (0, -1), (-1, -2)),
    (3, 2, (1, 0), (2, 1)), (3, -2, (1, 0), (2, -1)),
    (-3, 2, (-1, 0), (-2, 1)), (-3, -2, (-1, 0), (-2, -1)),
]


def is_in_palace(file: int, rank: int, side: Side) -> bool:
    """Check if a square is in the palace for the given side."""
    if not 3 <= file <= 5:
        return False
    if side == Side.HAN:
        return 0 <= rank <= 2
    return 7 <= rank <= 9


def is_palace_center(file: int, rank: int) -> bool:
    return file == 4 and rank in (1, 8)


def is_palace_corner(file: int, rank: int) -> bool:
    return file in (3, 5) and rank in (0, 2, 7, 9)


def palace_center_for(rank: int) -> Position:
    """Center of the palace on the same half of the board as ``rank``."""
    return Position(4, 1 if rank < 5 else 8)


def _add_target(board: Board, piece: Piece, file: int, rank: int, moves: List[Position]) -> None:
    """Append (file, rank) if it is on the board and not held by a friendly piece."""
    if not board.in_bounds(file, rank):
        return
    target = board.board[rank][file]
    if target is None or target.side != piece.side:
        moves.append(Position(file, rank))


def _slide(
    board: Board, piece: Piece, df: int, dr: int, moves: List[Position], max_steps: int = 10
) -> None:
    """Slide until blocked; the first enemy piece met is a capture."""
    file, rank = piece.position
    for step in range(1, max_steps + 1):
        to_file, to_rank = file + df * step, rank + dr * step
        if not board.in_bounds(to_file, to_rank):
            break
        target = board.board[to_rank][to_file]
        if target is None:
            moves.append(Position(to_file, to_rank))
            continue
        if target.side != piece.side:
            moves.append(Position(to_file, to_rank))
        break


def _cannon_line(board: Board, piece: Piece, df: int, dr: int, moves: List[Position]) -> None:
    """Cannon moves along one line: jump exactly one non-Cannon screen."""
    file, rank = piece.position
    screened = False
    to_file, to_rank = file + df, rank + dr
    while board.in_bounds(to_file, to_rank):
        target = board.board[to_rank][to_file]
        if not screened:
            if target is not None:
                if target.piece_type == PieceType.CANNON:
                    break
                screened = True
        elif target is None:
            moves.append(Position(to_file, to_rank))
        else:
            if target.side != piece.side and target.piece_type != PieceType.CANNON:
                moves.append(Position(to_file, to_rank))
            break
        to_file += df
        to_rank += dr


def _pawn_moves(board: Board, piece: Piece) -> List[Position]:
    """Forward or sideways; forward diagonals along palace lines."""
    moves: List[Position] = []
    file, rank = piece.position
    forward = piece.side.forward

    _add_target(board, piece, file, rank + forward, moves)
    _add_target(board, piece, file - 1, rank, moves)
    _add_target(board, piece, file + 1, rank, moves)

    if is_palace_center(file, rank):
        _add_target(board, piece, file - 1, rank + forward, moves)
        _add_target(board, piece, file + 1, rank + forward, moves)
    elif is_palace_corner(file, rank):
        center = palace_center_for(rank)
        if rank + forward == center.rank:
            _add_target(board, piece, center.file, center.rank, moves)
    return moves


def _rook_moves(board: Board, piece: Piece) -> List[Position]:
    """Orthogonal slides, plus palace diagonal slides from a center or corner."""
    moves: List[Position] = []
    file, rank = piece.position
    for df, dr in ORTHOGONAL_DIRECTIONS:
        _slide(board, piece, df, dr, moves)

    if is_palace_center(file, rank):
        for df, dr in [(-1, -1), (1, -1), (-1, 1), (1, 1)]:
            _slide(board, piece, df, dr, moves, max_steps=1)
    elif is_palace_corner(file, rank):
        center = palace_center_for(rank)
        # One diagonal step into the center
        _slide(board, piece, center.file - file, center.rank - rank, moves, max_steps=1)
    return moves


def _cannon_moves(board: Board, piece: Piece) -> List[Position]:
    moves: List[Position] = []
    file, rank = piece.position
    for df, dr in ORTHOGONAL_DIRECTIONS:
        _cannon_line(board, piece, df, dr, moves)

    # Palace diagonal: corner to opposite corner over a non-Cannon in the center
    if is_palace_corner(file, rank):
        center = palace_center_for(rank)
        screen = board.get(center)
        if screen is not None and screen.piece_type != PieceType.CANNON:
            to_file, to_rank = 2 * center.file - file, 2 * center.rank - rank
            target = board.board[to_rank][to_file]
            if target is None or (
                target.side != piece.side and target.piece_type != PieceType.CANNON
            ):
                moves.append(Position(to_file, to_rank))
    return moves


def _horse_moves(board: Board, piece: Piece) -> List[Position]:
    moves: List[Position] = []
    file, rank = piece.position
    for df, dr, leg_f, leg_r in HORSE_PATTERNS:
        if not board.in_bounds(file + leg_f, rank + leg_r):
            continue
        if board.board[rank + leg_r][file + leg_f] is not None:
            continue
        _add_target(board, piece, file + df, rank + dr, moves)
    return moves


def _elephant_moves(board: Board, piece: Piece) -> List[Position]:
    moves: List[Position] = []
    file, rank = piece.position
    for df, dr, (f1, r1), (f2, r2) in ELEPHANT_PATTERNS:
        if not (board.in_bounds(file + f1, rank + r1) and board.in_bounds(file + f2, rank + r2)):
            continue
        if board.board[rank + r1][file + f1] is not None:
            continue
        if board.board[rank + r2][file + f2] is not None:
            continue
        _add_target(board, piece, file + df, rank + dr, moves)
    return moves


def _palace_piece_moves(board: Board, piece: Piece) -> List[Position]:
    """General and Guard: one step, diagonals only from a palace center/corner."""
    moves: List[Position] = []
    file, rank = piece.position
    for df, dr in ORTHOGONAL_DIRECTIONS:
        _add_target(board, piece, file + df, rank + dr, moves)

    if is_palace_center(file, rank) or is_palace_corner(file, rank):
        for df, dr in DIAGONAL_DIRECTIONS:
            if is_in_palace(file + df, rank + dr, piece.side):
                _add_target(board, piece, file + df, rank + dr, moves)

    return [pos for pos in moves if is_in_palace(pos.file, pos.rank, piece.side)]


_GENERATORS = {
    PieceType.KING: _palace_piece_moves,
    PieceType.GUARD: _palace_piece_moves,
    PieceType.ROOK: _rook_moves,
    PieceType.CANNON: _cannon_moves,
    PieceType.HORSE: _horse_moves,
    PieceType.ELEPHANT: _elephant_moves,
    PieceType.PAWN: _pawn_moves,
}


def pseudo_legal_moves(piece: Piece, board: Board) -> List[Position]:
    """Destinations allowed by the piece's movement pattern and board occupancy.

    Self-check is not considered. Destinations never hold a friendly piece.
    """
    if piece.position is None:
        return []
    return _GENERATORS[piece.piece_type](board, piece)


def is_in_check(side: Side, board: Board) -> bool:
    """Check if the given side's General is attacked.

    A side with no General on the board counts as in check.
    """
    king = board.find_king(side)
    if king is None:
        return True
    for piece in board.pieces(side.opponent):
        if king.position in pseudo_legal_moves(piece, board):
            return True
    return False


def legal_moves(piece: Piece, board: Board) -> List[Move]:
    """Pseudo-legal moves of ``piece`` that do not leave its own General in check.

    Capturing the enemy General is always legal.
    """
    origin = piece.position
    moves = []
    for target in pseudo_legal_moves(piece, board):
        occupant = board.get(target)
        if (
            occupant is not None
            and occupant.piece_type == PieceType.KING
            and occupant.side != piece.side
        ):
            moves.append(Move.between(origin, target))
            continue
        with board.simulate(origin, target):
            in_check = is_in_check(piece.side, board)
        if not in_check:
            moves.append(Move.between(origin, target))
    return moves


def all_legal_moves(side: Side, board: Board) -> List[Move]:
    """Legal moves of every piece of ``side``, in board scan order."""
    moves = []
    for piece in board.pieces(side):
        moves.extend(legal_moves(piece, board))
    return moves


def has_legal_move(side: Side, board: Board) -> bool:
    return any(legal_moves(piece, board) for piece in board.pieces(side))
