"""Season and sun exposure helpers."""

from datetime import datetime

from models.route import Aspect
from models.weather import Season
from utils.constants import (
    CLOUD_SUN_BLOCKING,
    DEFAULT_CLOUD_COVER_PERCENT,
    SEASONAL_SUN_HOURS,
)

# Northern hemisphere month -> season. Dec-Feb is winter.
_NORTHERN_SEASONS: dict[int, Season] = {
    12: Season.WINTER,
    1: Season.WINTER,
    2: Season.WINTER,
    3: Season.SPRING,
    4: Season.SPRING,
    5: Season.SPRING,
    6: Season.SUMMER,
    7: Season.SUMMER,
    8: Season.SUMMER,
    9: Season.FALL,
    10: Season.FALL,
    11: Season.FALL,
}

_OPPOSITE_SEASON: dict[Season, Season] = {
    Season.WINTER: Season.SUMMER,
    Season.SUMMER: Season.WINTER,
    Season.SPRING: Season.FALL,
    Season.FALL: Season.SPRING,
}

# Faces swap across the equator: the sun is to the north in the south
_MIRRORED_ASPECTS: dict[Aspect, Aspect] = {
    Aspect.N: Aspect.S,
    Aspect.NE: Aspect.SE,
    Aspect.E: Aspect.E,
    Aspect.SE: Aspect.NE,
    Aspect.S: Aspect.N,
    Aspect.SW: Aspect.NW,
    Aspect.W: Aspect.W,
    Aspect.NW: Aspect.SW,
}


def season_for(when: datetime, latitude: float | None = None) -> Season:
    """
    Get the meteorological season for a date and hemisphere.

    Args:
        when: Date to classify
        latitude: Latitude in degrees; southern latitudes flip the season.
            Unknown latitude is treated as northern hemisphere.

    Returns:
        Season for that date
    """
    season = _NORTHERN_SEASONS[when.month]
    if latitude is not None and latitude < 0:
        return _OPPOSITE_SEASON[season]
    return season


def typical_sun_hours(season: Season) -> float:
    """Typical direct-sun hours per day on an open south face."""
    return SEASONAL_SUN_HOURS[season.value]


def effective_sun_hours(season: Season, cloud_cover_percent: float | None) -> float:
    """
    Daily direct-sun hours after cloud cover, before aspect and canopy.

    Full overcast blocks CLOUD_SUN_BLOCKING of the seasonal sun.
    """
    if cloud_cover_percent is None:
        cloud_cover_percent = DEFAULT_CLOUD_COVER_PERCENT
    cloud_fraction = min(max(cloud_cover_percent, 0.0), 100.0) / 100.0
    return typical_sun_hours(season) * (1.0 - CLOUD_SUN_BLOCKING * cloud_fraction)


def sun_facing_aspect(aspect: Aspect | None, latitude: float | None = None) -> Aspect | None:
    """
    Map a face's aspect onto its northern-hemisphere equivalent.

    Sun exposure tables are written for the northern hemisphere, where south
    faces get the most sun. Southern latitudes mirror north and south so a
    north face there is scored like a south face here.
    """
    if aspect is None or latitude is None or latitude >= 0:
        return aspect
    return _MIRRORED_ASPECTS[aspect]
