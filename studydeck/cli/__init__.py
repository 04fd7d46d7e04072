"""Command-line interface for StudyDeck."""
