"""Pydantic schemas for payloads exchanged with the doctor app."""
