"""API endpoints for the pool."""

import os
import threading

import structlog
from fastapi import APIRouter, Depends

from pairpool.config import PoolConfig
from pairpool.constants import UINT256_MAX
from pairpool.engine import PoolEngine
from pairpool.errors import InvalidInput
from pairpool.models.requests import (
    AmountOutResponse,
    DepositRequest,
    DepositResponse,
    PriceResponse,
    ReservesResponse,
    SharesResponse,
    SwapRequest,
    SwapResponse,
    WithdrawRequest,
    WithdrawResponse,
)
from pairpool.models.types import is_valid_address, normalize_address
from pairpool.tokens.memory import InMemoryAsset

logger = structlog.get_logger()

router = APIRouter()

# Addresses of the default in-memory pool, configurable via environment variables
POOL_ADDRESS = os.environ.get("POOL_ADDRESS", "0x5000000000000000000000000000000000000001")
POOL_ASSET_A = os.environ.get("POOL_ASSET_A", "0xa000000000000000000000000000000000000001")
POOL_ASSET_B = os.environ.get("POOL_ASSET_B", "0xb000000000000000000000000000000000000001")
POOL_OWNER = os.environ.get("POOL_OWNER", "0x0000000000000000000000000000000000000001")
# Initial reserves minted to the owner and deposited at startup (0 disables seeding)
POOL_SEED_A = int(os.environ.get("POOL_SEED_A", "1000"))
POOL_SEED_B = int(os.environ.get("POOL_SEED_B", "1000"))

_default_engine: PoolEngine | None = None
_default_engine_lock = threading.Lock()


def build_default_engine(config: PoolConfig | None = None) -> PoolEngine:
    """Build an in-memory pool from the POOL_* environment settings.

    The owner is minted the seed amounts of both assets, approves the pool
    for them and seeds it, receiving the initial shares.
    """
    config = config or PoolConfig.from_env()
    asset_a = InMemoryAsset(POOL_ASSET_A, owner=POOL_OWNER, symbol="A")
    asset_b = InMemoryAsset(POOL_ASSET_B, owner=POOL_OWNER, symbol="B")
    engine = PoolEngine.in_memory(POOL_ADDRESS, asset_a, asset_b, config=config)

    if POOL_SEED_A > 0 and POOL_SEED_B > 0:
        for asset, amount in ((asset_a, POOL_SEED_A), (asset_b, POOL_SEED_B)):
            asset.mint(POOL_OWNER, POOL_OWNER, amount)
            asset.approve(POOL_OWNER, POOL_ADDRESS, UINT256_MAX)
        engine.seed(POOL_OWNER, POOL_SEED_A, POOL_SEED_B)

    return engine


def get_default_engine() -> PoolEngine:
    """Get or lazily build the process-wide default pool."""
    global _default_engine
    with _default_engine_lock:
        if _default_engine is None:
            _default_engine = build_default_engine()
        return _default_engine


def get_engine() -> PoolEngine:
    """Dependency provider for the pool engine.

    Override this in tests to inject a prepared pool:
        app.dependency_overrides[get_engine] = lambda: engine

    Returns:
        The pool engine serving requests.
    """
    return get_default_engine()


@router.post("/deposit")
def deposit(request: DepositRequest, engine: PoolEngine = Depends(get_engine)) -> DepositResponse:
    """Deposit both assets at the current pool ratio."""
    used_a, used_b, shares = engine.deposit(
        sender=request.sender,
        asset_a=request.asset_a,
        asset_b=request.asset_b,
        desired_a=int(request.desired_a),
        desired_b=int(request.desired_b),
        min_a=int(request.min_a),
        min_b=int(request.min_b),
        recipient=request.recipient,
        deadline=request.deadline,
    )
    return DepositResponse(used_a=str(used_a), used_b=str(used_b), shares_issued=str(shares))


@router.post("/withdraw")
def withdraw(request: WithdrawRequest, engine: PoolEngine = Depends(get_engine)) -> WithdrawResponse:
    """Redeem shares for a proportional slice of both reserves."""
    amount_a, amount_b = engine.withdraw(
        sender=request.sender,
        asset_a=request.asset_a,
        asset_b=request.asset_b,
        shares=int(request.shares),
        min_a=int(request.min_a),
        min_b=int(request.min_b),
        recipient=request.recipient,
        deadline=request.deadline,
    )
    return WithdrawResponse(amount_a=str(amount_a), amount_b=str(amount_b))


@router.post("/swap")
def swap(request: SwapRequest, engine: PoolEngine = Depends(get_engine)) -> SwapResponse:
    """Swap an exact input amount for the pool's other asset."""
    amount_out = engine.swap(
        sender=request.sender,
        amount_in=int(request.amount_in),
        amount_out_min=int(request.amount_out_min),
        path=request.path,
        recipient=request.recipient,
        deadline=request.deadline,
    )
    return SwapResponse(amount_out=str(amount_out))


@router.get("/price")
def price(asset_x: str, asset_y: str, engine: PoolEngine = Depends(get_engine)) -> PriceResponse:
    """Spot price of asset_x in asset_y, scaled by 1e18."""
    return PriceResponse(
        asset_x=normalize_address(asset_x),
        asset_y=normalize_address(asset_y),
        price=str(engine.get_price(asset_x, asset_y)),
    )


@router.get("/amount-out")
def amount_out(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    engine: PoolEngine = Depends(get_engine),
) -> AmountOutResponse:
    """Constant-product quote for the given reserves."""
    result = engine.get_amount_out(amount_in, reserve_in, reserve_out)
    return AmountOutResponse(amount_out=str(result))


@router.get("/reserves")
def reserves(engine: PoolEngine = Depends(get_engine)) -> ReservesResponse:
    snapshot = engine.reserves()
    return ReservesResponse(
        asset_a=engine.asset_a,
        asset_b=engine.asset_b,
        reserve_a=str(snapshot.reserve_a),
        reserve_b=str(snapshot.reserve_b),
        total_shares=str(engine.total_shares),
    )


@router.get("/shares/{owner}")
def shares(owner: str, engine: PoolEngine = Depends(get_engine)) -> SharesResponse:
    if not is_valid_address(owner):
        raise InvalidInput(f"Invalid owner address: {owner}")
    return SharesResponse(owner=normalize_address(owner), shares=str(engine.share_balance(owner)))
