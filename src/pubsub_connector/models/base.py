"""Base model for configuration and caller-facing reports."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelCaseModel(BaseModel):
    """
    Model that accepts snake_case or camelCase keys and dumps camelCase aliases.

    Unknown keys are rejected so a misspelt configuration key fails loudly
    instead of silently falling back to a default.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def to_wire(self) -> dict[str, Any]:
        """JSON-compatible camelCase dict, leaving out unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
