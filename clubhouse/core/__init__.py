"""Core module for the clubhouse application."""

from .types import FirestoreDocument

__all__ = ["FirestoreDocument"]
