"""Pydantic models for pool API requests and responses.

Amounts travel as uint256 decimal strings, as they do on-chain, so that
values above 2**53 survive JSON clients.
"""

from pydantic import BaseModel, Field

from pairpool.models.types import Address, Uint256


class DepositRequest(BaseModel):
    """Deposit a pair of assets and receive pool shares."""

    sender: Address = Field(description="Account the assets are pulled from")
    asset_a: Address
    asset_b: Address
    desired_a: Uint256 = Field(description="Most of asset_a the sender will deposit")
    desired_b: Uint256 = Field(description="Most of asset_b the sender will deposit")
    min_a: Uint256 = "0"
    min_b: Uint256 = "0"
    recipient: Address = Field(description="Account credited with the shares")
    deadline: int = Field(ge=0, description="Unix timestamp after which the deposit is rejected")


class DepositResponse(BaseModel):
    used_a: Uint256
    used_b: Uint256
    shares_issued: Uint256


class WithdrawRequest(BaseModel):
    """Burn pool shares for a proportional slice of both reserves."""

    sender: Address = Field(description="Account whose shares are burned")
    asset_a: Address
    asset_b: Address
    shares: Uint256
    min_a: Uint256 = "0"
    min_b: Uint256 = "0"
    recipient: Address = Field(description="Account paid the withdrawn assets")
    deadline: int = Field(ge=0)


class WithdrawResponse(BaseModel):
    amount_a: Uint256
    amount_b: Uint256


class SwapRequest(BaseModel):
    """Swap an exact input amount along a two-asset path."""

    sender: Address
    amount_in: Uint256
    amount_out_min: Uint256 = "0"
    path: list[Address] = Field(min_length=2, max_length=2, description="[asset_in, asset_out]")
    recipient: Address
    deadline: int = Field(ge=0)


class SwapResponse(BaseModel):
    amount_out: Uint256


class PriceResponse(BaseModel):
    asset_x: Address
    asset_y: Address
    price: Uint256 = Field(description="Price of asset_x in asset_y, scaled by 1e18")


class AmountOutResponse(BaseModel):
    amount_out: Uint256


class ReservesResponse(BaseModel):
    asset_a: Address
    asset_b: Address
    reserve_a: Uint256
    reserve_b: Uint256
    total_shares: Uint256


class SharesResponse(BaseModel):
    owner: Address
    shares: Uint256


class ErrorResponse(BaseModel):
    """Body returned when a pool operation is rejected."""

    error: str = Field(description="Error class name, e.g. SlippageExceeded")
    detail: str
