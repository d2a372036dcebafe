from .recommendations import climate_recommendations
from .regions import state_for_zip
from .storm import estimate_storm_frequency, storm_frequency_from_weather

__all__ = [
    "climate_recommendations",
    "estimate_storm_frequency",
    "state_for_zip",
    "storm_frequency_from_weather",
]
