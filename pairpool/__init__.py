"""Two-asset constant-product liquidity pool."""

from pairpool.engine import DepositResult, PoolEngine, WithdrawResult

__version__ = "0.1.0"
__all__ = ["PoolEngine", "DepositResult", "WithdrawResult", "__version__"]
