"""StudyDeck - spaced repetition flashcards.

SM-2 scheduling for vocabulary study items, with an async deck store
(SQLite) and a command-line review interface.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
