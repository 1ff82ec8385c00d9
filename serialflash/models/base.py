"""Base model for all serialflash Pydantic models.

This module provides a base model class that enforces consistent serialization
behavior across all serialflash models.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict


class SerialFlashBaseModel(BaseModel):
    """Base model class for all serialflash Pydantic models.

    Serialization always uses aliases, JSON-compatible values and
    enum values, so results can be handed to any presentation layer.
    """

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        use_enum_values=False,
        validate_assignment=True,
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert model to dictionary with consistent serialization parameters."""
        return self.model_dump(by_alias=True, exclude_unset=True, mode="json")
