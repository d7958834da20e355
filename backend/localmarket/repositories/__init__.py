"""Data access layer: repositories over the ORM models, grouped by a unit of work."""

from localmarket.repositories.unit_of_work import UnitOfWork

__all__ = ["UnitOfWork"]
