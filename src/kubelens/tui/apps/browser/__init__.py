"""Interactive resource browser.

Usage:
    from kubelens.tui.apps.browser import BrowserApp

    app = BrowserApp(session=session)
    app.run()
"""

from kubelens.tui.apps.browser.app import BrowserApp

__all__ = ["BrowserApp"]
