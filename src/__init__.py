"""daylens — turn a day of raw activity into a structured knowledge layer."""

__version__ = "0.1.0"
