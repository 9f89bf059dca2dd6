"""Shared base for backend payload schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator


class PayloadModel(BaseModel):
    """
    Base for wire payloads.

    Unknown fields are ignored, and an explicit null in a field that has a
    default is read as that default. Required fields still reject null.
    """

    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _null_means_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is not None:
            return value
        field = cls.model_fields[info.field_name]
        if field.is_required():
            return value
        return field.get_default(call_default_factory=True)
