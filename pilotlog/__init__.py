"""
Pilot logbook backend.

Flask API for pilots to keep a flight logbook, look up flights via
AviationStack, import crew schedules and view logbook analytics.
"""

__version__ = '1.0.0'
