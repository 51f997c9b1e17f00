"""Pool constants.

Centralizes the fixed-point scale and integer bounds used by the pricing
and share math.
"""

# Maximum uint256 value; every reserve, share and intermediate product must fit
UINT256_MAX = 2**256 - 1

# Fixed-point scale for spot prices (1e18)
PRICE_SCALE = 10**18
