"""Management API client and the two deployment phases."""
