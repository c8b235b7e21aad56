"""
Pydantic models for the status dashboard API (v2).

Wire contract::

    GET  /v2/components -> [{"id": int, "name": str, "attributes": [{"name", "value"}]}]
    POST /v2/incidents  <- {"title", "description", "impact", "components",
                            "start_date", "system", "type"}

``LogicalComponent`` is the configuration-side identity of a service in
an environment, before the dashboard's numeric ID is known.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ComponentAttribute(BaseModel):
    """A (name, value) pair identifying a component."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str

    def sort_key(self) -> tuple[str, str]:
        return (self.name, self.value)


class LogicalComponent(BaseModel):
    """Component identity as declared in configuration."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    attributes: frozenset[ComponentAttribute] = Field(default_factory=frozenset)

    @field_validator("attributes")
    @classmethod
    def unique_attribute_names(
        cls, v: frozenset[ComponentAttribute]
    ) -> frozenset[ComponentAttribute]:
        names = [attr.name for attr in v]
        if len(names) != len(set(names)):
            raise ValueError("attribute names must be unique within a component")
        return v

    @classmethod
    def from_mapping(cls, name: str, attributes: Mapping[str, str]) -> "LogicalComponent":
        return cls(
            name=name,
            attributes=frozenset(
                ComponentAttribute(name=k, value=v) for k, v in attributes.items()
            ),
        )

    def describe(self) -> str:
        attrs = ", ".join(
            f"{a.name}={a.value}" for a in sorted(self.attributes, key=ComponentAttribute.sort_key)
        )
        return f"{self.name}[{attrs}]"


class RemoteComponent(BaseModel):
    """Component as returned by ``GET /v2/components``."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    attributes: list[ComponentAttribute] = Field(default_factory=list)


class IncidentRequest(BaseModel):
    """Body of ``POST /v2/incidents``."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    title: str
    description: str = ""
    impact: int = Field(..., ge=0, le=3)
    component_ids: list[int] = Field(..., min_length=1, alias="components")
    start_date: str = Field(..., description="RFC3339, UTC")
    is_automatic: bool = Field(True, alias="system")
    kind: Literal["incident"] = Field("incident", alias="type")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)
