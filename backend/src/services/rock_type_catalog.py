"""Rock type classification service."""

import logging
from typing import Any, Iterable

from models.rock import RockGroup, RockTypeProfile, porosity_class_for

logger = logging.getLogger(__name__)

# (name, group, porosity percent)
DEFAULT_ROCK_TYPES: dict[str, tuple[str, RockGroup, float]] = {
    # Soft rocks that are permanently damaged when climbed wet
    "sandstone": ("Sandstone", RockGroup.WET_SENSITIVE, 20.0),
    "arkose": ("Arkose", RockGroup.WET_SENSITIVE, 18.0),
    "graywacke": ("Graywacke", RockGroup.WET_SENSITIVE, 15.0),
    # Hard, non-porous rocks
    "granite": ("Granite", RockGroup.FAST_DRYING, 1.0),
    "granodiorite": ("Granodiorite", RockGroup.FAST_DRYING, 1.2),
    "tonalite": ("Tonalite", RockGroup.FAST_DRYING, 1.5),
    "rhyolite": ("Rhyolite", RockGroup.FAST_DRYING, 7.0),
    # Moderate porosity
    "basalt": ("Basalt", RockGroup.MEDIUM_DRYING, 5.0),
    "andesite": ("Andesite", RockGroup.MEDIUM_DRYING, 6.0),
    "schist": ("Schist", RockGroup.MEDIUM_DRYING, 3.5),
    # Absorb and retain water
    "phyllite": ("Phyllite", RockGroup.SLOW_DRYING, 10.0),
    "argillite": ("Argillite", RockGroup.SLOW_DRYING, 12.0),
    "chert": ("Chert", RockGroup.SLOW_DRYING, 3.0),
    "metavolcanic": ("Metavolcanic", RockGroup.SLOW_DRYING, 4.0),
}

# Generic porous stand-in for codes the catalog does not know
FALLBACK_NAME = "Unknown rock"
FALLBACK_POROSITY_PERCENT = 10.0


def normalize_code(code: str | None) -> str:
    """Normalize a rock type code for lookup."""
    if not code:
        return ""
    return code.strip().lower().replace(" ", "_")


class RockTypeCatalog:
    """Maps rock type codes to drying profiles. Never raises on lookup."""

    def __init__(self, rock_types: dict[str, tuple[str, RockGroup, float]] = None):
        """Initialize the catalog.

        Args:
            rock_types: code -> (name, group, porosity percent). Defaults
                to the built-in table.
        """
        table = rock_types if rock_types is not None else DEFAULT_ROCK_TYPES
        self._profiles: dict[str, RockTypeProfile] = {}
        for code, (name, group, porosity) in table.items():
            key = normalize_code(code)
            self._profiles[key] = RockTypeProfile(
                code=key,
                name=name,
                group=group,
                porosity_class=porosity_class_for(porosity),
                porosity_percent=porosity,
            )

    @classmethod
    def from_records(cls, records: Iterable[dict[str, Any]]) -> "RockTypeCatalog":
        """
        Build a catalog from reference-data rows.

        Each row needs ``name``, ``group`` (a RockGroup value) and
        ``porosity_percent``; ``code`` defaults to the name. Invalid rows are
        logged and skipped.
        """
        table: dict[str, tuple[str, RockGroup, float]] = {}
        for record in records:
            try:
                group = RockGroup(record["group"])
                name = record["name"]
                table[record.get("code") or name] = (
                    name,
                    group,
                    float(record["porosity_percent"]),
                )
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping invalid rock type record {record!r}: {e}")
        return cls(table)

    def classify(self, rock_type_code: str | None) -> RockTypeProfile:
        """
        Get the drying profile for a rock type code.

        Unknown or missing codes resolve to a generic porous,
        non-wet-sensitive profile with ``assumed=True``.
        """
        key = normalize_code(rock_type_code)
        profile = self._profiles.get(key)
        if profile is not None:
            return profile

        return RockTypeProfile(
            code=key or "unknown",
            name=FALLBACK_NAME,
            group=RockGroup.UNCLASSIFIED,
            porosity_class=porosity_class_for(FALLBACK_POROSITY_PERCENT),
            porosity_percent=FALLBACK_POROSITY_PERCENT,
            assumed=True,
        )

    def known_codes(self) -> list[str]:
        """List the codes this catalog recognizes."""
        return sorted(self._profiles)

    def profiles(self) -> list[RockTypeProfile]:
        """Known profiles, ordered by code."""
        return [self._profiles[code] for code in self.known_codes()]
