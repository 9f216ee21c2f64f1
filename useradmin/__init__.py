"""
User administration service.

Permission-gated user management with an append-only audit trail.
"""

__version__ = "0.1.0"
