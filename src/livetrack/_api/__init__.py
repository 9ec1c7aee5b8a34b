"""Clients for the external routing and location-store services."""
