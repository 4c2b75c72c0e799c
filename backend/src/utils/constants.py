"""Shared constants for the crag drying engine."""

# Forecast timeline horizon: 6 days of hourly samples
FORECAST_HORIZON_HOURS: int = 6 * 24

# Minimum history the weather provider is expected to supply
HISTORICAL_LOOKBACK_HOURS: int = 14 * 24

# History shorter than these sample counts lowers confidence
SHORT_HISTORY_SAMPLES: int = 24
LIMITED_HISTORY_SAMPLES: int = 48

# Wet routes drying within this many hours count as "drying" in area stats
AREA_DRYING_WINDOW_HOURS: float = 24.0

# Batch request caps
MAX_BATCH_ROUTE_IDS: int = 200
MAX_BATCH_AREA_IDS: int = 100

# Typical direct-sun hours per day on an unobstructed south face, by season.
# Keys are Season values.
SEASONAL_SUN_HOURS: dict[str, float] = {
    "winter": 5.0,
    "spring": 7.0,
    "summer": 9.0,
    "fall": 6.0,
}

# Fraction of direct sun blocked under full overcast
CLOUD_SUN_BLOCKING: float = 0.8

# Cloud cover assumed when no weather sample is available
DEFAULT_CLOUD_COVER_PERCENT: float = 50.0
