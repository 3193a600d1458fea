"""LiveCaption client: capture, upload and caption feed."""
