from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.shared.api.utils import ApiSuccess

T = TypeVar("T")


class ApiOut(ApiSuccess, Generic[T]):
    """Standard API envelope used by public routers."""

    results: T  # type: ignore[valid-type]


class CamelModel(BaseModel):
    """Schema exchanged with the camelCase keys OpenVidu clients use."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
