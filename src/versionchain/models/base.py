"""Base Pydantic model configuration for versionchain models.

All versionchain records inherit from VersionChainBaseModel:
- Immutability (frozen=True): records are fixed once declared
- Strict validation (extra="forbid") to catch typos and invalid fields
"""

from pydantic import BaseModel, ConfigDict


class VersionChainBaseModel(BaseModel):
    """Base model for all versionchain records.

    Example:
        >>> class MyModel(VersionChainBaseModel):
        ...     name: str
        >>> obj = MyModel(name="test")
        >>> obj.name = "other"  # Raises ValidationError (frozen)
        Traceback (most recent call last):
        ...
        pydantic_core._pydantic_core.ValidationError: ...
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        validate_default=True,
        arbitrary_types_allowed=True,
    )
