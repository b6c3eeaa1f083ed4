"""
MedOps front-desk core.

Connection-state reconciliation and dashboard synchronisation between the
front-desk assistant application and the doctor application, together with
the local SQLite patient store, payload cipher and patient backups it relies on.
"""

__version__ = "1.0.0"
