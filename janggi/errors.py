"""Exceptions raised by the Janggi rules engine."""


class JanggiError(Exception):
    """Base class for all rule errors. None of them are fatal to a game."""


class InvalidSetup(JanggiError):
    """Unknown formation, square or piece code in a board setup."""


class InvalidSelection(JanggiError):
    """Selected square is empty or holds a piece of the side not to move."""


class IllegalMove(JanggiError):
    """Requested move is not among the legal moves of the selected piece."""


class GameAlreadyOver(JanggiError):
    """Game has an outcome; the state is frozen."""


class NothingToUndo(JanggiError):
    """Undo requested with an empty history."""


class InvalidSearchState(JanggiError):
    """Search requested with depth <= 0 or on a finished game."""
