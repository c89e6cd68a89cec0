"""Shared pydantic base for request/response bodies.

Learn: The web client speaks camelCase JSON (accessToken, projectId,
borderRadius). Models keep snake_case attributes and expose camelCase
aliases; input is accepted in either form.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
