"""Storage and stream helpers shared by the API."""
