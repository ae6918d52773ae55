"""
Shared pydantic base for every schema exchanged with clients.

Python attributes stay snake_case; the wire format is camelCase.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True
    )

    def to_wire(self) -> dict:
        """JSON-ready dict using camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
