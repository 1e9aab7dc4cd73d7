"""Reference Fluids (Catalog)."""
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from stokeslab.model.errors import UnknownFluidError


class FluidKey(StrEnum):
    """Stable identifiers of the catalog entries (used by the UI dropdown and the CLI)."""
    WATER = "water"
    SUNFLOWER_OIL = "sunflower_oil"
    MOTOR_OIL = "motor_oil"
    GLYCERIN = "glycerin"


@dataclass(frozen=True)
class FluidSpec:
    key: FluidKey
    name: str
    density: float  # kg/m³
    viscosity: float  # Pa·s, reference value the measurement is compared against


FLUID_CATALOG: dict[FluidKey, FluidSpec] = {
    FluidKey.WATER: FluidSpec(FluidKey.WATER, "Water", density=1000.0, viscosity=0.89),
    FluidKey.SUNFLOWER_OIL: FluidSpec(FluidKey.SUNFLOWER_OIL, "Sunflower oil", density=920.0, viscosity=1.5),
    FluidKey.MOTOR_OIL: FluidSpec(FluidKey.MOTOR_OIL, "Motor oil", density=880.0, viscosity=8.5),
    FluidKey.GLYCERIN: FluidSpec(FluidKey.GLYCERIN, "Glycerin", density=1260.0, viscosity=12.3),
}

DEFAULT_FLUID = FluidKey.WATER


def get_fluid(key: FluidKey | str) -> FluidSpec:
    """Look up a catalog entry by its key or the key's string value."""
    try:
        return FLUID_CATALOG[FluidKey(key)]
    except ValueError:
        known = ", ".join(k.value for k in FluidKey)
        raise UnknownFluidError(f"Unknown fluid '{key}'. Known fluids: {known}") from None


def list_fluids() -> list[FluidSpec]:
    """Catalog entries in dropdown order."""
    return list(FLUID_CATALOG.values())
