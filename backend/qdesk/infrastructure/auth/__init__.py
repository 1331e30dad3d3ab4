"""
Auth Infrastructure Package for QDesk
"""

from qdesk.infrastructure.auth.identity_gate import IdentityGate, TOKEN_ALGORITHM

__all__ = ["IdentityGate", "TOKEN_ALGORITHM"]
