"""Ingestion of fetched feed items into the article store."""

from .reconciler import IngestionReconciler

__all__ = ["IngestionReconciler"]
