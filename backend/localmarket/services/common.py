"""Lookup helpers shared by the domain services."""

from typing import Any

from localmarket.exceptions import AuthorizationError, NotFoundError
from localmarket.identifiers import parse_id
from localmarket.repositories.base import Repository


async def fetch_or_404(repository: Repository, raw_id: Any, resource: str) -> Any:
    """
    Parses `raw_id` and loads the entity.

    Raises:
        ValidationError: malformed identifier (before any query runs)
        NotFoundError: no row with that identifier
    """
    entity_id = parse_id(raw_id, f"{resource}_id")
    entity = await repository.get(entity_id)
    if entity is None:
        raise NotFoundError(resource=resource, resource_id=str(raw_id))
    return entity


def require_owner(owner_email: str, caller_email: str, resource: str) -> None:
    if (owner_email or "").lower() != caller_email.lower():
        raise AuthorizationError(
            message=f"This {resource} belongs to another account",
            context={"resource": resource},
        )
