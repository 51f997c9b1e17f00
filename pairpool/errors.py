"""Pool error classes.

Every failure aborts the whole operation that raised it. Arithmetic errors
also subclass the builtin ArithmeticError so callers doing plain integer
math can catch them the usual way.
"""


class PoolError(Exception):
    """Base error for pool operations."""

    pass


class Expired(PoolError):
    """Operation submitted after its deadline."""

    pass


class InvalidInput(PoolError):
    """Amount, reserve, asset or path argument is not acceptable."""

    pass


class PoolArithmeticError(PoolError, ArithmeticError):
    """Base class for checked-arithmetic failures."""

    pass


class DivisionByZero(PoolArithmeticError):
    """Division or modulo by zero."""

    pass


class ArithmeticOverflow(PoolArithmeticError):
    """Value does not fit in uint256."""

    pass


class ArithmeticUnderflow(PoolArithmeticError):
    """Subtraction would produce a negative result."""

    pass


class SlippageExceeded(PoolError):
    """A caller-supplied minimum (or maximum) bound was not met."""

    pass


class InsufficientLiquidityMinted(PoolError):
    """Deposit would issue zero shares."""

    pass


class InsufficientShares(PoolError):
    """Owner holds fewer shares than requested."""

    pass


class InsufficientOutput(PoolError):
    """Swap would pay out nothing."""

    pass


class InvalidSwapDirection(PoolError):
    """The named input asset did not arrive at the pool."""

    pass


class TransferFailed(PoolError):
    """An asset collaborator reported a failed transfer."""

    pass


class Unauthorized(PoolError):
    """Owner-gated ledger call made by a non-owner."""

    pass


class InsufficientBalance(PoolError):
    """Ledger account balance too small for a burn."""

    pass


__all__ = [
    "PoolError",
    "Expired",
    "InvalidInput",
    "PoolArithmeticError",
    "DivisionByZero",
    "ArithmeticOverflow",
    "ArithmeticUnderflow",
    "SlippageExceeded",
    "InsufficientLiquidityMinted",
    "InsufficientShares",
    "InsufficientOutput",
    "InvalidSwapDirection",
    "TransferFailed",
    "Unauthorized",
    "InsufficientBalance",
]
