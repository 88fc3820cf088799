"""Brand-filtered ATM discovery over public geocoding and POI services."""

__version__ = "1.0.0"
