"""Roadwell client data layer: auth sessions and data sync for the driver wellness app."""

__version__ = "1.0.0"
