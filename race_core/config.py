"""
Race engine configuration defaults.
"""

# Race timing / event channel
RACE_CONFIG = {
    "tick_interval_s": 0.1,       # elapsed-time refresh
    "event_queue_size": 1024,     # bounded event queue
}

# Proximity zones
ZONE_CONFIG = {
    "default_radius_m": 30.0,
}

# Position filtering
FILTER_CONFIG = {
    "max_horizontal_accuracy_m": 65.0,
    "smooth_speed": False,
}

# Distance accumulation
DISTANCE_CONFIG = {
    "noise_floor_m": 0.2,
    "glitch_ceiling_m": 200.0,
}

# Logging
LOGGING_CONFIG = {
    "level": "INFO",
    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}
