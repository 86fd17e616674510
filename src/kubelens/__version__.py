"""Version information for kubelens."""

__version__ = "0.1.0"
