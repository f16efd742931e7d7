from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire. Accepts either on input."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
