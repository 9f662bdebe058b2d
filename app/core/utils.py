"""
Utility functions for the application.
"""
from datetime import datetime, timezone
from typing import Type, TypeVar, List, Optional, Dict, Any
from pydantic import BaseModel

T = TypeVar('T', bound=BaseModel)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


async def model_to_schema(
    db_model: Any,
    schema_class: Type[T]
) -> T:
    """
    Convert a SQLAlchemy model instance to a Pydantic schema instance.

    Args:
        db_model: SQLAlchemy model instance
        schema_class: Pydantic schema class

    Returns:
        Instance of the Pydantic schema
    """
    return schema_class.model_validate(
        db_model,
        from_attributes=True
    )

async def models_to_schemas(
    db_models: List[Any],
    schema_class: Type[T]
) -> List[T]:
    """
    Convert a list of SQLAlchemy model instances to a list of Pydantic schema instances.
    """
    return [await model_to_schema(model, schema_class) for model in db_models]


def page_bounds(page: Optional[int], limit: Optional[int]) -> Optional[Dict[str, int]]:
    """
    Translate 1-indexed page/limit into offset/limit.

    Returns None when pagination was not requested, mirroring the query API
    which only paginates when both values are supplied.
    """
    if page is None or limit is None:
        return None
    page = max(page, 1)
    limit = max(limit, 1)
    return {"offset": (page - 1) * limit, "limit": limit}
