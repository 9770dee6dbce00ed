"""Pydantic option models for resource definitions and commands.

These models provide a consistent "validate → normalize → execute" flow:
command keyword arguments are resolved once into :class:`CommandOptions`
before any state is touched.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Literal

from pydantic import ConfigDict, Field, field_validator, model_validator

from pyresync._constants import DEFAULT_KEY_BY, DEFAULT_METHODS
from pyresync.models._base import ResyncBaseModel
from pyresync.models.item import MetadataType


def _as_param_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


class CommandOptions(ResyncBaseModel):
    """Options accepted by every resource command."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
    )

    force: bool = False
    metadata: dict[str, Any] | None = None
    items_metadata: dict[str, Any] | None = None
    projection: MetadataType | None = None
    previous_values: dict[str, Any] | None = None
    push: list[Any] = Field(default_factory=list)
    unshift: list[Any] = Field(default_factory=list)
    invalidate: list[Any] = Field(default_factory=list)
    value: Any = True
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("push", "unshift", "invalidate", mode="before")
    @classmethod
    def _wrap_list_params(cls, value: Any) -> list[Any]:
        return _as_param_list(value)

    @classmethod
    def resolve(cls, options: CommandOptions | None = None, **overrides: Any) -> CommandOptions:
        """Combine an options object with explicit keyword overrides.

        Keyword arguments left at ``None`` do not override anything.
        """
        explicit = {name: value for name, value in overrides.items() if value is not None}
        if options is None:
            return cls(**explicit)
        if not explicit:
            return options
        return cls(**{**options.model_dump(exclude_unset=True), **explicit})


class ListOperations(ResyncBaseModel):
    """List keys that a newly created item is pushed to, unshifted to, or that get invalidated."""

    push: tuple[str, ...] = ()
    unshift: tuple[str, ...] = ()
    invalidate: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.push or self.unshift or self.invalidate)


class AssociationOptions(ResyncBaseModel):
    """Declaration of one association from an owner resource to an associated one.

    ``key`` names the attribute on the owner that holds the associated key(s);
    ``foreign_key`` names the attribute on the associated item that holds the
    owner key(s). ``as_name`` replaces the owner name when deriving the default
    foreign key. ``list_parameter`` names the owner list parameter that refers
    to an associated key; ``False`` leaves owner lists alone when an
    associated item is destroyed.
    """

    foreign_key: str | None = None
    key: str | None = None
    as_name: str | None = None
    dependent: bool = False
    list_parameter: str | Literal[False] | None = None


def _association_map(value: Any) -> Any:
    if isinstance(value, str):
        return {value: {}}
    if isinstance(value, (list, tuple)):
        return {name: {} for name in value}
    return value


class ResourceOptions(ResyncBaseModel):
    """Definition of one resource type."""

    name: str
    url: str | None = None
    key_by: str | tuple[str, ...] | None = DEFAULT_KEY_BY
    url_only_params: tuple[str, ...] | None = None
    singular: bool = False
    local_only: bool = False
    progress: bool = False
    projection: MetadataType | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    methods: dict[str, str] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)
    request_adaptor: Callable[[dict[str, Any]], Any] | None = None
    response_adaptor: Callable[[Any, int], Mapping[str, Any]] | None = None
    belongs_to: dict[str, AssociationOptions] = Field(default_factory=dict)
    has_and_belongs_to_many: dict[str, AssociationOptions] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def _name_non_empty(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("name must be non-empty")
        return name

    @field_validator("methods")
    @classmethod
    def _known_methods(cls, value: dict[str, str]) -> dict[str, str]:
        unknown = sorted(set(value) - set(DEFAULT_METHODS))
        if unknown:
            raise ValueError(f"unknown commands in methods: {', '.join(unknown)}")
        return {command: method.upper() for command, method in value.items()}

    @field_validator("belongs_to", "has_and_belongs_to_many", mode="before")
    @classmethod
    def _normalize_associations(cls, value: Any) -> Any:
        return _association_map(value)

    @model_validator(mode="after")
    def _url_required_for_remote(self) -> ResourceOptions:
        if self.url is None and not self.local_only:
            raise ValueError(f"resource '{self.name}' needs a url unless it is local_only")
        return self

    def method_for(self, command: str) -> str:
        return self.methods.get(command, DEFAULT_METHODS[command])
