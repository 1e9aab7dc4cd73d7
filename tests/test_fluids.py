from __future__ import annotations

from dataclasses import replace

import pytest

from stokeslab.config import max_measure_distance
from stokeslab.model.errors import UnknownFluidError, InvalidGeometry, StokesLabError
from stokeslab.model.fluids import FluidKey, FLUID_CATALOG, DEFAULT_FLUID, get_fluid, list_fluids
from stokeslab.model.state import ExperimentConfig

pytestmark = pytest.mark.physics


def test_catalog_values() -> None:
    table = {f.key: (f.name, f.density, f.viscosity) for f in list_fluids()}

    assert table == {
        FluidKey.WATER: ("Water", 1000.0, 0.89),
        FluidKey.SUNFLOWER_OIL: ("Sunflower oil", 920.0, 1.5),
        FluidKey.MOTOR_OIL: ("Motor oil", 880.0, 8.5),
        FluidKey.GLYCERIN: ("Glycerin", 1260.0, 12.3),
    }


def test_catalog_order_follows_keys() -> None:
    assert [f.key for f in list_fluids()] == list(FluidKey)
    assert DEFAULT_FLUID in FLUID_CATALOG


def test_get_fluid_accepts_key_or_string() -> None:
    assert get_fluid(FluidKey.MOTOR_OIL) is get_fluid("motor_oil")


def test_unknown_fluid() -> None:
    with pytest.raises(UnknownFluidError) as exc_info:
        get_fluid("honey")

    assert isinstance(exc_info.value, KeyError)
    assert isinstance(exc_info.value, StokesLabError)
    assert str(exc_info.value).startswith("Unknown fluid 'honey'")


def test_default_config_is_valid() -> None:
    config = ExperimentConfig()
    config.validate()

    assert config.fluid.key == FluidKey.WATER
    assert config.radius_m == pytest.approx(0.005)
    assert config.distance_m == pytest.approx(0.2)
    assert (config.window_start_mm, config.window_end_mm, config.bottom_limit_mm) == (50.0, 250.0, 460.0)


def test_window_must_end_above_bottom(short_tube_config) -> None:
    assert max_measure_distance(300.0) == 210.0

    replace(short_tube_config, measure_distance=209.0).validate()
    with pytest.raises(InvalidGeometry):
        replace(short_tube_config, measure_distance=210.0).validate()


@pytest.mark.parametrize(
    "changes",
    [
        {"ball_density": 50.0},
        {"ball_density": 9000.0},
        {"ball_radius": 0.5},
        {"ball_radius": 60.0},
        {"tube_height": 50.0},
        {"measure_distance": 0.0},
    ],
)
def test_out_of_bounds_values_are_rejected(water_config, changes) -> None:
    with pytest.raises(InvalidGeometry):
        replace(water_config, **changes).validate()
