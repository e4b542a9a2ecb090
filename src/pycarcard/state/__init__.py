"""State/store layer.

This package is the single source of truth for the tag collection held in
memory: the entity store itself plus the policies around it (freshness,
request coalescing, endpoint capability and optimistic mutation).
"""
