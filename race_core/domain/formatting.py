"""Display formatting for race values."""


def format_duration(seconds: float) -> str:
    """Format a duration as zero-padded HH:MM:SS (fractions truncated)."""
    total = int(max(0.0, seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_distance_km(meters: float) -> str:
    return f"{meters / 1000:.2f} km"


def format_speed_kmh(speed_m_s: float) -> str:
    return f"{speed_m_s * 3.6:.1f} km/h"
