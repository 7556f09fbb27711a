"""
Schema base classes.

The HTTP API speaks camelCase (``inviteToken``, ``organizationId``); Python
code uses snake_case. Both spellings are accepted on input.
"""
from typing import ClassVar, Tuple

from pydantic import BaseModel, model_validator
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class UpdateSchema(BaseSchema):
    """
    Partial update body.

    Every field may be left out. Fields named in ``required_fields`` back
    NOT NULL columns: they may be omitted but not sent as null.
    """

    required_fields: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        for field in self.required_fields:
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class MessageResponse(BaseSchema):
    message: str
