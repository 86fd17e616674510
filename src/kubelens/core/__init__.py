"""Core configuration for kubelens."""
