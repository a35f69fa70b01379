"""RoleGate - identity core.

Hierarchical role authorization, access/refresh credential lifecycle and a
multi-account login handshake.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
