from typing import Iterable
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def reject_explicit_nulls(model: BaseModel, fields: Iterable[str]) -> None:
    """Partial updates may omit these fields but may not send them as null."""
    for field in fields:
        if field in model.model_fields_set and getattr(model, field) is None:
            raise ValueError(f"{to_camel(field)} cannot be null")
