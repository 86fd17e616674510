"""Terminal user interface for kubelens.

Usage:
    from kubelens.tui import BaseScreen, BaseWidget, Styles
    from kubelens.tui.components import ConfirmDeletion, SelectorPopup
    from kubelens.tui.apps.browser import BrowserApp
"""

from kubelens.tui.base import BaseScreen, BaseWidget
from kubelens.tui.theme import Styles

__all__ = [
    "BaseScreen",
    "BaseWidget",
    "Styles",
]
