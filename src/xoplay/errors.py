"""Exception types raised by xoplay."""


class XoplayError(Exception):
    """Base class for xoplay errors."""


class InvalidBoardError(XoplayError, ValueError):
    """Board is not 9 cells of X, O or empty."""


class IllegalMoveError(XoplayError, ValueError):
    """Move targets an occupied or out-of-range square."""


class ConfigError(XoplayError, ValueError):
    """Environment or CLI setting has an unusable value."""
