"""kubelens - interactive Kubernetes resource browser driven by kubectl."""

from kubelens.__version__ import __version__

__all__ = ["__version__"]
