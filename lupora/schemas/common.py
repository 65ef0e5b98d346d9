from typing import Annotated
from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel
from lupora.utils.validation import sanitize_text


def _sanitize(value):
    return sanitize_text(value) if isinstance(value, str) else value


# Free text from clients; cleaned before length/pattern constraints apply
SanitizedStr = Annotated[str, BeforeValidator(_sanitize)]


class CamelModel(BaseModel):
    """Base for request/response bodies: camelCase on the wire, snake_case in Python"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class MessageResponse(BaseModel):
    """Standard API message body"""
    message: str
