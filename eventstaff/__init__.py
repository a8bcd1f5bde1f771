"""Backend service for event staffing, quote requests and administration."""

__version__ = "1.0.0"
