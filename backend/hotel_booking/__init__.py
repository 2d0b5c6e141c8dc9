"""Hotel room booking API for event ticket holders."""

__version__ = "1.0.0"
