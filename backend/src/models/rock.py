"""Rock type classification models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PorosityClass(str, Enum):
    """How much water a rock absorbs, from dense crystalline to soft sedimentary."""

    LOW = "low"  # < 3% porosity: granite, granodiorite, tonalite
    MEDIUM = "medium"  # 3-8%: basalt, schist, chert
    HIGH = "high"  # 8-15%: phyllite, argillite, graywacke
    VERY_HIGH = "very_high"  # > 15%: sandstone, arkose


class RockGroup(str, Enum):
    """Closed set of rock groups with known drying behaviour."""

    WET_SENSITIVE = "wet_sensitive"
    FAST_DRYING = "fast_drying"
    MEDIUM_DRYING = "medium_drying"
    SLOW_DRYING = "slow_drying"
    UNCLASSIFIED = "unclassified"

    @property
    def display_name(self) -> str:
        """Human-readable group name."""
        return ROCK_GROUP_NAMES[self]

    @property
    def is_wet_sensitive(self) -> bool:
        """Whether climbing this group while wet permanently damages the rock."""
        return ROCK_GROUP_WET_SENSITIVE[self]


# Both tables must cover every RockGroup member
ROCK_GROUP_NAMES: dict[RockGroup, str] = {
    RockGroup.WET_SENSITIVE: "Wet-Sensitive Rock",
    RockGroup.FAST_DRYING: "Fast-Drying Rock",
    RockGroup.MEDIUM_DRYING: "Medium-Drying Rock",
    RockGroup.SLOW_DRYING: "Slow-Drying Rock",
    RockGroup.UNCLASSIFIED: "Unclassified Rock",
}

ROCK_GROUP_WET_SENSITIVE: dict[RockGroup, bool] = {
    RockGroup.WET_SENSITIVE: True,
    RockGroup.FAST_DRYING: False,
    RockGroup.MEDIUM_DRYING: False,
    RockGroup.SLOW_DRYING: False,
    RockGroup.UNCLASSIFIED: False,
}


def porosity_class_for(porosity_percent: float) -> PorosityClass:
    """Bucket a porosity percentage into its class."""
    if porosity_percent < 3.0:
        return PorosityClass.LOW
    if porosity_percent < 8.0:
        return PorosityClass.MEDIUM
    if porosity_percent <= 15.0:
        return PorosityClass.HIGH
    return PorosityClass.VERY_HIGH


class RockTypeProfile(BaseModel):
    """Drying characteristics of a single rock type."""

    code: str = Field(..., description="Lower-case rock type code")
    name: str = Field(..., description="Rock type display name")
    group: RockGroup = Field(..., description="Drying group")
    porosity_class: PorosityClass = Field(..., description="Porosity bucket")
    porosity_percent: float = Field(..., ge=0, le=100)
    assumed: bool = Field(
        default=False,
        description="True when the code was unknown and a generic profile was substituted",
    )

    model_config = ConfigDict(frozen=True)

    @property
    def group_name(self) -> str:
        return self.group.display_name

    @property
    def is_wet_sensitive(self) -> bool:
        return self.group.is_wet_sensitive
