# tracker/models/common.py
from __future__ import annotations

from bson import ObjectId
from pydantic import BaseModel, ConfigDict
from pydantic_core import core_schema


class PyObjectId(ObjectId):
    """
    Pydantic v2 ObjectId type:
    - Validates strings -> ObjectId
    - Shows up as a string in the OpenAPI schema
    """

    @classmethod
    def __get_pydantic_core_schema__(cls, source, handler):
        def validate(v):
            if isinstance(v, ObjectId):
                return v
            if isinstance(v, str) and ObjectId.is_valid(v):
                return ObjectId(v)
            raise ValueError("Invalid ObjectId")

        return core_schema.no_info_plain_validator_function(
            validate,
            json_schema_input_schema=core_schema.str_schema(),
            serialization=core_schema.plain_serializer_function_ser_schema(
                str, when_used="json"
            ),
        )

    @classmethod
    def __get_pydantic_json_schema__(cls, core_schema_, handler):
        return {"type": "string", "examples": ["64b7c2c9f1c2a8b123456789"]}


class TrackerBaseModel(BaseModel):
    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        populate_by_name=True,
        use_enum_values=True,
        str_strip_whitespace=True,
    )

    def to_document(self) -> dict:
        """Mongo-ready dict: aliases applied, unset optionals dropped."""
        return self.model_dump(by_alias=True, exclude_none=True)
