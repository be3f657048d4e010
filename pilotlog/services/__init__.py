"""
Application services.

Handles authentication, the audit trail, schedule imports and third-party
flight lookups with caching and graceful degradation when unavailable.
"""

from pilotlog.services.flight_info import FlightInfo, FlightInfoService, flight_info_service

__all__ = ['FlightInfo', 'FlightInfoService', 'flight_info_service']
