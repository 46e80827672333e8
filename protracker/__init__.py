"""ProTracker core: time tracking, invoicing, expenses and reporting."""

__version__ = "1.0.0"
