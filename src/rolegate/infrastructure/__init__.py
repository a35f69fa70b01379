"""Infrastructure layer - external dependencies and implementations.

This layer contains the SQLAlchemy persistence adapters and the password
hashing and token signing primitives used by the domain services.
"""
