"""LiveCaption server package."""
