"""Tests for pool configuration."""

import pytest

from pairpool.config import DEFAULT_POOL_CONFIG, FirstDepositPolicy, PoolConfig


class TestPoolConfig:
    """Tests for PoolConfig defaults and environment loading."""

    def test_defaults(self):
        assert DEFAULT_POOL_CONFIG.price_scale == 10**18
        assert DEFAULT_POOL_CONFIG.first_deposit_policy is FirstDepositPolicy.GEOMETRIC_MEAN

    def test_from_env_default(self, monkeypatch):
        monkeypatch.delenv("POOL_FIRST_DEPOSIT_POLICY", raising=False)
        assert PoolConfig.from_env() == PoolConfig()

    @pytest.mark.parametrize("raw", ["reserve_sum", "RESERVE_SUM", " reserve_sum "])
    def test_from_env_reserve_sum(self, monkeypatch, raw):
        monkeypatch.setenv("POOL_FIRST_DEPOSIT_POLICY", raw)
        assert PoolConfig.from_env().first_deposit_policy is FirstDepositPolicy.RESERVE_SUM

    def test_from_env_invalid(self, monkeypatch):
        monkeypatch.setenv("POOL_FIRST_DEPOSIT_POLICY", "fair")
        with pytest.raises(ValueError, match="POOL_FIRST_DEPOSIT_POLICY"):
            PoolConfig.from_env()

    def test_frozen(self):
        with pytest.raises(AttributeError):
            DEFAULT_POOL_CONFIG.price_scale = 1  # type: ignore[misc]
