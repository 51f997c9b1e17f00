"""Pydantic models for the pool API."""

from pairpool.models.requests import (
    AmountOutResponse,
    DepositRequest,
    DepositResponse,
    ErrorResponse,
    PriceResponse,
    ReservesResponse,
    SharesResponse,
    SwapRequest,
    SwapResponse,
    WithdrawRequest,
    WithdrawResponse,
)
from pairpool.models.types import Address, Uint256, is_valid_address, normalize_address

__all__ = [
    "Address",
    "Uint256",
    "is_valid_address",
    "normalize_address",
    "DepositRequest",
    "DepositResponse",
    "WithdrawRequest",
    "WithdrawResponse",
    "SwapRequest",
    "SwapResponse",
    "PriceResponse",
    "AmountOutResponse",
    "ReservesResponse",
    "SharesResponse",
    "ErrorResponse",
]
