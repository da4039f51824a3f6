from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class NodeDefinition(BaseModel):
    """How to derive typed entities from one survey row.

    The values of `identifying_characteristics`, joined in order, form the
    entity's composite key. `other_characteristics` are copied onto the
    entity but do not take part in its identity.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    type: str = Field(min_length=1)
    identifying_characteristics: tuple[str, ...] = Field(min_length=1)
    other_characteristics: tuple[str, ...] = ()
    has_delimiter: bool = False
    delimiter: str = ""

    @model_validator(mode="after")
    def _check_delimiter(self) -> NodeDefinition:
        if self.has_delimiter and not self.delimiter:
            raise ValueError(f"node type {self.type!r} has_delimiter set without a delimiter")
        return self

    @property
    def all_characteristics(self) -> tuple[str, ...]:
        return self.identifying_characteristics + self.other_characteristics


@dataclass(frozen=True, slots=True)
class NodeDefinitionRegistry:
    """The ordered node definitions of one run."""

    definitions: tuple[NodeDefinition, ...] = ()

    def __iter__(self):
        return iter(self.definitions)

    def __len__(self) -> int:
        return len(self.definitions)

    @property
    def known_types(self) -> list[str]:
        # dict keeps first-declared order
        return list(dict.fromkeys(d.type for d in self.definitions))

    @property
    def referenced_fields(self) -> list[str]:
        return list(dict.fromkeys(f for d in self.definitions for f in d.all_characteristics))


@dataclass(slots=True)
class Entity:
    """A resolved network node.

    `id` alone is the identity; `type` is whatever definition created it first.
    `ties` keeps one entry per co-occurrence, so repeats are expected.
    """

    id: str
    type: str
    characteristics: dict[str, str] = field(default_factory=dict)
    ties: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class TypeCollision:
    """An id claimed by a definition whose type differs from the entity's."""

    entity_id: str
    kept_type: str
    other_type: str
