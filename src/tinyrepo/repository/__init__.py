"""
Repository

This package provides the per-entity repository: CRUD plus lookups by
arbitrary column predicates for one entity dataclass and its table.
"""

from tinyrepo.repository.repository import Repository

__all__ = ["Repository"]
