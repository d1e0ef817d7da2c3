# backend/app/schemas/commons.py
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Literal

PhotoCategory = Literal["before", "during", "after", "issue", "equipment", "safety", "general"]
PHOTO_CATEGORIES: tuple[str, ...] = ("before", "during", "after", "issue", "equipment", "safety", "general")

RouteStatus = Literal["planned", "active", "completed", "cancelled"]

OverlayPosition = Literal["bottom-right", "bottom-left", "top-right", "top-left", "center"]


class CamelModel(BaseModel):
    # the PROSECU client speaks camelCase JSON
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
