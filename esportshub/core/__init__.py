"""Core module for the esportshub application."""

from .types import APIResponse, FirestoreDocument

__all__ = ["FirestoreDocument", "APIResponse"]
