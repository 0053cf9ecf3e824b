"""Convenly: event discovery and RSVP backend."""

__version__ = "1.0.0"
