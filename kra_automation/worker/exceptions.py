class AutomationAlreadyRunningError(Exception):
    """Raised when starting a feature that already has a run in progress."""
