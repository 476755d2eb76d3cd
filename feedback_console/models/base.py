from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    """Immutable record; camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_wire(self, **kwargs):
        return self.model_dump(mode='json', by_alias=True, **kwargs)
