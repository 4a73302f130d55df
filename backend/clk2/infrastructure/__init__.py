"""Infrastructure Layer — disk IO and cross-cutting concerns.

Invariants:
    - Infrastructure never decides clock semantics; it moves bytes and configures logging
    - OS-level failures are mapped to core/errors.py types before leaving this layer
"""
