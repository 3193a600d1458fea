"""LiveCaption operator/viewer client."""
