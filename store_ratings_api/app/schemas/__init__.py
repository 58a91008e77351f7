"""
Pydantic schema definitions for API payloads.

JSON keys are camelCase on the wire (``ownerId``, ``averageRating``)
while the Python attributes stay snake_case; request bodies accept
either spelling.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialising field names as camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    message: str
