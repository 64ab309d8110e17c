"""LifeLink — geospatial proximity and urgency scoring for blood donation coordination."""

__version__ = "0.1.0"
