"""Base model for Forge API responses."""

from __future__ import annotations

import types
from typing import Any, Self, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from ..exceptions import DecodeError


def _accepts_none(annotation: Any) -> bool:
    if annotation is None or annotation is type(None) or annotation is Any:
        return True
    if get_origin(annotation) in (Union, types.UnionType):
        return type(None) in get_args(annotation)
    return False


class ForgeModel(BaseModel):
    """Base model with common behavior for all Forge API models.

    Fields are snake_case in Python and camelCase on the wire. A JSON ``null``
    in a field that is not Optional decodes to the field's default.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, alias_generator=to_camel)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        required = set()
        generate = cls.model_config.get("alias_generator")
        for name, info in cls.model_fields.items():
            if _accepts_none(info.annotation):
                continue
            required.add(name)
            alias = info.alias or (generate(name) if callable(generate) else None)
            if alias:
                required.add(alias)
        return {k: v for k, v in data.items() if v is not None or k not in required}

    @classmethod
    def from_api(cls, data: Any) -> Self:
        """Validate a decoded response body; schema mismatches raise DecodeError."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise DecodeError(f"unexpected {cls.__name__} payload: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    def to_payload(self) -> dict[str, Any]:
        """Wire representation (camelCase keys) for request bodies."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
