"""Transcription, translation and event services."""
