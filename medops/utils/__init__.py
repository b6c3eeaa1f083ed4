"""Utility helpers shared across MedOps."""
