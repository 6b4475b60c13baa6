"""
Desktop notifications through libnotify (PyGObject)
"""

import logging

logger = logging.getLogger(__name__)

APP_NAME = "VMware Sign Manager"


def notify(summary, body=""):
    """Show a desktop notification; returns False when none could be shown"""
    try:
        import gi
        gi.require_version('Notify', '0.7')
        from gi.repository import Notify
    except (ImportError, ValueError) as e:
        logger.debug("Notifications disabled (install PyGObject and gir1.2-notify-0.7): %s", e)
        return False

    try:
        if not Notify.is_initted():
            Notify.init(APP_NAME)
        notification = Notify.Notification.new(summary, body, "dialog-information")
        notification.show()
        return True
    except Exception as e:
        # GLib.Error when no notification daemon is reachable (root, no session bus)
        logger.debug("Unable to show notification: %s", e)
        return False
