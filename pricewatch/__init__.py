"""PriceWatch - marketplace price tracking with drop alerts."""

__version__ = "1.0.0"
