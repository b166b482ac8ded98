"""Static safety checks for Move modules: references, objects, capabilities and transfers."""

__version__ = "0.1.0"