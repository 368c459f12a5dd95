"""Tests for potential landscapes."""

import numpy as np
import pytest

from quantum_playground.core.potential import (
    Barrier,
    DoubleWell,
    Freehand,
    GaussianWell,
    Harmonic,
    NoPotential,
    PotentialField,
    PotentialType,
    Sinusoid,
    default_params,
)
from quantum_playground.errors import InvalidConfiguration, UnknownPotentialType
from quantum_playground.utils.types import SimulationConfig


@pytest.fixture
def config():
    return SimulationConfig(grid_size=64, dx=0.1)


class TestPotentialType:
    @pytest.mark.parametrize(
        "tag,expected",
        [
            ("none", PotentialType.NONE),
            ("gaussianWell", PotentialType.GAUSSIAN_WELL),
            ("gaussian_well", PotentialType.GAUSSIAN_WELL),
            ("GAUSSIAN-WELL", PotentialType.GAUSSIAN_WELL),
            ("barrier", PotentialType.BARRIER),
            ("harmonic", PotentialType.HARMONIC),
            ("doubleWell", PotentialType.DOUBLE_WELL),
            ("sinusoid", PotentialType.SINUSOID),
            ("freehand", PotentialType.FREEHAND),
        ],
    )
    def test_parse(self, tag, expected):
        assert PotentialType.parse(tag) is expected

    @pytest.mark.parametrize(
        "tag,expected",
        [
            ("single", PotentialType.GAUSSIAN_WELL),
            ("double", PotentialType.DOUBLE_WELL),
            ("quadratic", PotentialType.HARMONIC),
        ],
    )
    def test_legacy_tags(self, tag, expected):
        assert PotentialType.parse(tag) is expected

    def test_parse_member_passthrough(self):
        assert PotentialType.parse(PotentialType.BARRIER) is PotentialType.BARRIER

    @pytest.mark.parametrize("tag", ["triangle", "", 42])
    def test_unknown(self, tag):
        with pytest.raises(UnknownPotentialType):
            PotentialType.parse(tag)

    def test_default_params(self):
        assert isinstance(default_params("doubleWell"), DoubleWell)
        assert isinstance(default_params(PotentialType.NONE), NoPotential)


class TestBuild:
    def test_none_is_zero(self, config):
        field = PotentialField.build(config)
        assert field.potential_type is PotentialType.NONE
        assert field.is_zero
        assert field.values.shape == (64, 64)

    def test_gaussian_well(self, config):
        field = PotentialField.build(config, GaussianWell(width=1.0, strength=2.0))
        assert field.value_at(32, 32) == pytest.approx(-2.0)
        assert np.all(field.values < 0)
        assert field.values.min() == pytest.approx(-2.0)
        # One cell away: -A exp(-dx^2 / 2 w^2)
        assert field.value_at(33, 32) == pytest.approx(-2.0 * np.exp(-0.01 / 2.0))

    def test_barrier_is_repulsive(self, config):
        field = PotentialField.build(config, "barrier")
        assert field.values.max() == pytest.approx(field.value_at(32, 32))
        assert field.value_at(32, 32) == pytest.approx(1.0)
        assert np.all(field.values > 0)

    def test_harmonic(self, config):
        field = PotentialField.build(config, Harmonic(strength=0.5))
        assert field.value_at(32, 32) == pytest.approx(0.0, abs=1e-12)
        assert field.value_at(42, 32) == pytest.approx(0.5 * 1.0**2)
        assert field.value_at(0, 0) == pytest.approx(0.5 * 2 * 3.2**2)

    def test_double_well_minima(self, config):
        field = PotentialField.build(config, "doubleWell")
        length = config.domain_size
        # Wells at (L/2, L/3) and (L/2, 2L/3), nearest cells (32, 21) and (32, 43)
        first = field.value_at(32, int(round(length / 3 / 0.1)))
        second = field.value_at(32, int(round(2 * length / 3 / 0.1)))
        assert first < -0.9
        assert second < -0.9
        assert first == pytest.approx(second, rel=1e-6)
        assert field.value_at(32, 32) > first

    def test_double_well_custom_centers(self, config):
        field = PotentialField.build(
            config, DoubleWell(first_center=(1.0, 1.0), second_center=(5.0, 5.0), width=0.3)
        )
        assert field.value_at(10, 10) == pytest.approx(-1.0, abs=1e-3)
        assert field.value_at(50, 50) == pytest.approx(-1.0, abs=1e-3)

    def test_sinusoid(self, config):
        field = PotentialField.build(config, Sinusoid(periods=2, strength=0.5))
        assert field.value_at(0, 0) == pytest.approx(-0.5)
        assert field.value_at(17, 16) == pytest.approx(0.5)
        # Stripes depend on y only
        np.testing.assert_allclose(field.values[5], field.values[5, 0])

    def test_freehand_starts_flat(self, config):
        field = PotentialField.build(config, Freehand(base=0.25))
        np.testing.assert_allclose(field.values, 0.25)

    def test_unknown_params_object(self, config):
        with pytest.raises(UnknownPotentialType):
            PotentialField.build(config, object())

    def test_unknown_tag(self, config):
        with pytest.raises(UnknownPotentialType):
            PotentialField.build(config, "triangle")

    @pytest.mark.parametrize("width", [0.0, -1.0])
    def test_rejects_bad_width(self, config, width):
        with pytest.raises(InvalidConfiguration):
            PotentialField.build(config, GaussianWell(width=width))


class TestPeriodicWrap:
    def test_well_at_origin_wraps(self, config):
        field = PotentialField.build(config, GaussianWell(center_x=0.0, center_y=0.0, width=0.5))
        assert field.value_at(1, 0) == pytest.approx(field.value_at(63, 0))
        assert field.value_at(0, 2) == pytest.approx(field.value_at(0, 62))
        assert field.value_at(63, 63) == pytest.approx(field.value_at(1, 1))

    def test_harmonic_is_symmetric_about_edges(self, config):
        field = PotentialField.build(config, Harmonic(center_x=0.0, center_y=0.0))
        assert field.value_at(5, 0) == pytest.approx(field.value_at(59, 0))


class TestImmutability:
    def test_values_read_only(self, config):
        field = PotentialField.build(config, "harmonic")
        with pytest.raises(ValueError):
            field.values[0, 0] = 1.0

    def test_constructor_copies(self):
        values = np.zeros((4, 4))
        field = PotentialField(values, PotentialType.FREEHAND, 0.1)
        values[0, 0] = 9.0
        assert field.value_at(0, 0) == 0.0

    def test_rejects_non_square(self):
        with pytest.raises(InvalidConfiguration):
            PotentialField(np.zeros((4, 2)), PotentialType.NONE, 0.1)


class TestBrush:
    def test_brush_returns_new_freehand(self, config):
        field = PotentialField.build(config, "none")
        painted = field.with_brush(3.2, 3.2, strength=2.0, radius=0.3)
        assert painted.potential_type is PotentialType.FREEHAND
        assert painted.value_at(32, 32) == pytest.approx(2.0)
        assert field.is_zero
        assert not painted.is_zero

    def test_brush_accumulates(self, config):
        field = PotentialField.build(config, "freehand")
        painted = field.with_brush(1.0, 1.0, 1.0, 0.2).with_brush(1.0, 1.0, 1.0, 0.2)
        assert painted.value_at(10, 10) == pytest.approx(2.0)

    def test_negative_strength_erases(self, config):
        field = PotentialField.build(config, "freehand").with_brush(1.0, 1.0, 1.0, 0.2)
        erased = field.with_brush(1.0, 1.0, -1.0, 0.2)
        assert erased.value_at(10, 10) == pytest.approx(0.0, abs=1e-12)

    def test_brush_wraps(self, config):
        field = PotentialField.build(config, "freehand").with_brush(0.0, 0.0, 1.0, 0.2)
        assert field.value_at(63, 0) == pytest.approx(field.value_at(1, 0))

    def test_brush_rejects_bad_radius(self, config):
        with pytest.raises(InvalidConfiguration):
            PotentialField.build(config, "freehand").with_brush(1.0, 1.0, 1.0, 0.0)


class TestNonFiniteParameters:
    @pytest.mark.parametrize(
        "params",
        [
            GaussianWell(strength=float("nan")),
            GaussianWell(center_x=float("inf")),
            Barrier(strength=float("inf")),
            Barrier(center_y=float("nan")),
            Harmonic(strength=float("inf")),
            DoubleWell(first_center=(float("nan"), 1.0)),
            DoubleWell(strength=float("nan")),
            Sinusoid(periods=float("inf")),
            Sinusoid(strength=float("nan")),
            Freehand(base=float("nan")),
        ],
        ids=[
            "well-strength", "well-center", "barrier-strength", "barrier-center",
            "harmonic-strength", "double-center", "double-strength",
            "sinusoid-periods", "sinusoid-strength", "freehand-base",
        ],
    )
    def test_build_rejects(self, config, params):
        with pytest.raises(InvalidConfiguration):
            PotentialField.build(config, params)

    def test_hand_built_field_rejects_nan(self):
        values = np.zeros((4, 4))
        values[1, 2] = np.nan
        with pytest.raises(InvalidConfiguration):
            PotentialField(values, PotentialType.FREEHAND, 0.1)

    def test_brush_rejects_nan_strength(self, config):
        field = PotentialField.build(config, "freehand")
        with pytest.raises(InvalidConfiguration):
            field.with_brush(1.0, 1.0, float("nan"), 0.2)
