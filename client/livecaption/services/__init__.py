"""Network, upload, session and feed services."""
