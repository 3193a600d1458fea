"""Local persistence for client settings and captions."""
