"""Tests for the parameter registry."""

import pytest

from stableswap.constants import PPM_DENOMINATOR
from stableswap.errors import FeeDeltaTooBig, FeeOutOfBounds, InvalidParameter, NotGovernor
from stableswap.governance import NO_CHANGE, Bounds, ParameterRegistry, ParamKey
from tests.helpers import CURATOR, GOVERNOR

HALF_DOWN_DOUBLE_UP = Bounds(max=0, max_decrease_pct=500_000, max_increase_pct=1_000_000)


@pytest.fixture
def registry() -> ParameterRegistry:
    return ParameterRegistry(GOVERNOR, {ParamKey.SWAP_FEE: HALF_DOWN_DOUBLE_UP})


class TestRelativeBounds:
    """Tests for per-direction relative limits."""

    @pytest.mark.parametrize("new", [50, 100, 150, 200])
    def test_within_bounds(self, registry, new):
        """Changes up to halving or doubling pass."""
        registry.check(ParamKey.SWAP_FEE, 100, new)

    @pytest.mark.parametrize("new", [49, 201])
    def test_beyond_bounds(self, registry, new):
        """Changes past the bound in either direction are rejected."""
        with pytest.raises(FeeDeltaTooBig):
            registry.check(ParamKey.SWAP_FEE, 100, new)

    def test_increase_from_zero(self, registry):
        """Any increase allowance permits leaving zero."""
        registry.check(ParamKey.SWAP_FEE, 0, 1_000)

    def test_increase_from_zero_without_allowance(self, registry):
        """A parameter with no increase allowance stays at zero."""
        registry.set_bounds(GOVERNOR, ParamKey.SWAP_FEE, Bounds(max_decrease_pct=PPM_DENOMINATOR))
        with pytest.raises(FeeDeltaTooBig):
            registry.check(ParamKey.SWAP_FEE, 0, 1)

    def test_unconfigured_parameter_is_frozen(self, registry):
        """Parameters without bounds default to NO_CHANGE."""
        assert registry.get_bounds(ParamKey.MINT_FEE) == NO_CHANGE
        registry.check(ParamKey.MINT_FEE, 100, 100)
        with pytest.raises(FeeDeltaTooBig):
            registry.check(ParamKey.MINT_FEE, 100, 101)


class TestAbsoluteCap:
    """Tests for the absolute maximum."""

    def test_cap_enforced(self, registry):
        """A change within relative bounds still respects the cap."""
        registry.set_bounds(
            GOVERNOR, ParamKey.SWAP_FEE, Bounds(max=150, max_decrease_pct=500_000, max_increase_pct=1_000_000)
        )
        registry.check(ParamKey.SWAP_FEE, 100, 150)
        with pytest.raises(FeeOutOfBounds):
            registry.check(ParamKey.SWAP_FEE, 100, 151)

    def test_check_cap_ignores_relative_bounds(self, registry):
        """check_cap looks only at the maximum."""
        registry.set_bounds(GOVERNOR, ParamKey.SWAP_FEE, Bounds(max=1_000))
        registry.check_cap(ParamKey.SWAP_FEE, 1_000)
        with pytest.raises(FeeOutOfBounds):
            registry.check_cap(ParamKey.SWAP_FEE, 1_001)

    def test_zero_max_is_uncapped(self, registry):
        """max = 0 leaves the value uncapped."""
        registry.check_cap(ParamKey.SWAP_FEE, 10**30)


class TestBoundsManagement:
    """Tests for bounds validation and ownership."""

    def test_only_governor_sets_bounds(self, registry):
        """Curators cannot loosen their own limits."""
        with pytest.raises(NotGovernor):
            registry.set_bounds(CURATOR, ParamKey.SWAP_FEE, Bounds(max_increase_pct=10**9))

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max": -1},
            {"max_increase_pct": -1},
            {"max_decrease_pct": -1},
            {"max_decrease_pct": PPM_DENOMINATOR + 1},
        ],
    )
    def test_invalid_bounds(self, kwargs):
        """Negative bounds and decreases beyond 100% are rejected."""
        with pytest.raises(InvalidParameter):
            Bounds(**kwargs)

    def test_governor_handover(self, registry):
        """Bounds follow the registry's governor once the nominee accepts."""
        registry.propose_governor(GOVERNOR, CURATOR)
        registry.accept_governor(CURATOR)

        registry.set_bounds(CURATOR, ParamKey.MINT_FEE, HALF_DOWN_DOUBLE_UP)
        assert registry.get_bounds(ParamKey.MINT_FEE) == HALF_DOWN_DOUBLE_UP
        with pytest.raises(NotGovernor):
            registry.set_bounds(GOVERNOR, ParamKey.MINT_FEE, NO_CHANGE)
