"""Authentication, session and role authorization service for the inventory system."""

__version__ = "1.0.0"
