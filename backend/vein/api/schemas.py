"""Shared request-body base: camelCase on the wire, snake_case in Python."""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def fields_set(self) -> dict:
        """Only the fields the client actually sent, keyed by Python name."""
        return self.model_dump(exclude_unset=True)
