"""
Window visibility and close protocol.
Visible/Minimized state machine, plus the kill-before-close rule.
"""

import logging
from enum import Enum, auto
from typing import Callable, Optional, Protocol


class VisibilityState(Enum):
    VISIBLE = auto()
    MINIMIZED = auto()


class CloseDecision(Enum):
    ALLOW = auto()
    DEFERRED = auto()


class Supervised(Protocol):
    kill_grace: float

    @property
    def is_running(self) -> bool: ...

    def request_kill(self) -> bool: ...

    def wait_for_exit(self, timeout: Optional[float] = None) -> bool: ...


class VisibilityController:
    """
    Tracks whether the launcher window is shown or parked in the tray.
    Closing while the child runs kills it first and waits the grace period.
    """

    def __init__(self, supervisor: Supervised):
        """
        Initialize in the Visible state.

        Args:
            supervisor: The process supervisor consulted on close
        """
        self.logger = logging.getLogger("BGRunner.Visibility")
        self.supervisor = supervisor
        self._state = VisibilityState.VISIBLE
        self._closing = False

        self.hide_callback: Optional[Callable[[], None]] = None
        self.show_callback: Optional[Callable[[], None]] = None

    @property
    def state(self) -> VisibilityState:
        return self._state

    def set_window_callbacks(self, hide_callback: Callable[[], None],
                             show_callback: Callable[[], None]):
        """
        Set the callbacks that actually hide/show the window.

        Args:
            hide_callback: Parks the window in the tray
            show_callback: Brings the window back
        """
        self.hide_callback = hide_callback
        self.show_callback = show_callback

    def minimize(self) -> bool:
        """Park the window. Returns False if it was already minimized."""
        if self._state == VisibilityState.MINIMIZED:
            return False
        self._state = VisibilityState.MINIMIZED
        self.logger.debug("Window minimized to tray")
        if self.hide_callback:
            self.hide_callback()
        return True

    def restore(self) -> bool:
        """Show the window again. Returns False if it was already visible."""
        if self._state == VisibilityState.VISIBLE:
            return False
        self._state = VisibilityState.VISIBLE
        self.logger.debug("Window restored")
        if self.show_callback:
            self.show_callback()
        return True

    def request_close(self) -> CloseDecision:
        """
        Decide whether the window may close now.

        A running child is killed first and the call waits up to the
        supervisor's grace period for it to exit. The caller must then
        re-issue the close, which is allowed.
        """
        if self._closing:
            return CloseDecision.ALLOW

        if not self.supervisor.is_running or not self.supervisor.request_kill():
            return CloseDecision.ALLOW

        self._closing = True
        if self.supervisor.wait_for_exit(self.supervisor.kill_grace):
            self.logger.info("Child exited after kill, closing")
        else:
            self.logger.warning(
                f"Child did not report exit within {self.supervisor.kill_grace:.3f}s, closing anyway"
            )
        return CloseDecision.DEFERRED
