"""Base model for feed records.

Every feed record model inherits from :class:`CityBikesBaseModel` which
provides:

* frozen instances that ignore unknown keys, so feeds can grow new
  fields without breaking parsing.
* population by field name as well as by the feed aliases declared on
  each field.
* a ``model_validator(mode="before")`` that drops placeholder values
  (``None``, ``""``, ``"--"``, NaN) so the field default is used, or
  validation fails for required fields.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from pycitybikes.ingestion.normalize import drop_placeholders


class CityBikesBaseModel(BaseModel):
    """Base for feed record models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_placeholders(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        return drop_placeholders(values)
