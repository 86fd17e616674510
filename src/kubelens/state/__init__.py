"""Application state: snapshots, marks, polling, deletion, and views.

``BrowserSession`` ties these together; import it from
``kubelens.state.session`` (it depends on the render layouts, which in
turn depend on this package).
"""

from kubelens.state.marks import MarkStore, MarkView
from kubelens.state.snapshot import (
    UNFETCHED,
    ApplicationState,
    Collection,
    ErrorRecord,
    Fetched,
    Snapshot,
    Unfetched,
)
from kubelens.state.deletion import DeletionExecutor
from kubelens.state.poller import PollCoordinator
from kubelens.state.views import ViewHandle, ViewRegistry

__all__ = [
    "UNFETCHED",
    "ApplicationState",
    "Collection",
    "DeletionExecutor",
    "ErrorRecord",
    "Fetched",
    "MarkStore",
    "MarkView",
    "PollCoordinator",
    "Snapshot",
    "Unfetched",
    "ViewHandle",
    "ViewRegistry",
]
