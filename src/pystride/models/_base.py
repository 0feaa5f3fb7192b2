"""Base model shared by every pystride snapshot.

Every model inherits from :class:`StrideBaseModel` which provides:

* ``frozen=True`` so a published snapshot can be handed to any
  number of consumers without defensive copies.
* ``alias_generator=to_camel`` so ``model_dump(by_alias=True)``
  yields the camelCase keys presentation layers expect
  (``cumulativeSteps``, ``stepsPerSecond``, ...), while Python code
  keeps snake_case attribute names.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StrideBaseModel(BaseModel):
    """Base for immutable pystride models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )
