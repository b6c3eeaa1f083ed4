"""Shared test fixtures for the MedOps suite."""
