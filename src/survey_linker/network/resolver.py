from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from survey_linker.settings import settings

from .models import Entity, NodeDefinition, NodeDefinitionRegistry, TypeCollision

logger = logging.getLogger(__name__)

Row = Mapping[str, str]


@dataclass(slots=True)
class ResolverState:
    """Everything one resolution run accumulates."""

    entities: dict[str, Entity] = field(default_factory=dict)
    collisions: list[TypeCollision] = field(default_factory=list)
    rows: int = 0

    @property
    def ties(self) -> int:
        return sum(len(e.ties) for e in self.entities.values())


class EntityResolver:
    """Resolve survey rows into deduplicated, tied entities.

    Within a row, definitions are applied in registry order and the first
    entity found becomes the hub: every other entity of that row receives a
    tie from it. Identity is the normalized key string only, so two
    definitions producing the same key share one entity and the first type
    seen is kept. Such collisions are recorded on the state.
    """

    def __init__(
        self,
        registry: NodeDefinitionRegistry,
        *,
        conjoiner: str | None = None,
        ampersand_substitute: str | None = None,
    ):
        self.registry = registry
        self.conjoiner = conjoiner or settings.conjoiner
        self.ampersand_substitute = (
            settings.ampersand_substitute if ampersand_substitute is None else ampersand_substitute
        )

    def resolve(self, rows: Iterable[Row], state: ResolverState | None = None) -> ResolverState:
        state = state or ResolverState()
        for row in rows:
            self.resolve_row(row, state)
        logger.info(
            "Resolved %d rows into %d entities and %d ties",
            state.rows,
            len(state.entities),
            state.ties,
        )
        return state

    def resolve_row(self, row: Row, state: ResolverState) -> list[Entity]:
        discovered: list[Entity] = []
        for definition in self.registry:
            key = self.composite_key(definition, row)
            if key is None:
                continue
            for sub_key in self.split_key(definition, key):
                discovered.append(self._identify(definition, sub_key, row, state))

        if len(discovered) > 1:
            hub = discovered[0]
            hub.ties.extend(e.id for e in discovered[1:])
            if any(e is hub for e in discovered[1:]):
                # kept: the DynetML link is a self-loop
                logger.warning("Row %d: entity %r is tied to itself", state.rows + 1, hub.id)
        state.rows += 1
        logger.debug("Row %d: %d entities", state.rows, len(discovered))
        return discovered

    def composite_key(self, definition: NodeDefinition, row: Row) -> str | None:
        """Join the identifying values, or None when any of them is missing."""
        values: list[str] = []
        for name in definition.identifying_characteristics:
            value = row.get(name)
            if not value:
                return None
            if self.conjoiner in self.normalize_id(value):
                logger.warning(
                    "Skipping %s key: field %r contains the conjoining token %r",
                    definition.type,
                    name,
                    self.conjoiner,
                )
                return None
            values.append(value)
        return self.conjoiner.join(values)

    def split_key(self, definition: NodeDefinition, key: str) -> list[str]:
        if not definition.has_delimiter:
            return [key]
        return [part for part in key.split(definition.delimiter) if part]

    def normalize_id(self, key: str) -> str:
        # ids go straight into XML attributes
        return key.replace("&", self.ampersand_substitute)

    def _identify(self, definition: NodeDefinition, key: str, row: Row, state: ResolverState) -> Entity:
        entity_id = self.normalize_id(key)
        entity = state.entities.get(entity_id)
        if entity is None:
            entity = state.entities[entity_id] = Entity(id=entity_id, type=definition.type)
        elif entity.type != definition.type:
            self._record_collision(entity, definition.type, state)

        for name in definition.all_characteristics:
            if name in row:
                entity.characteristics[name] = row[name]
        return entity

    @staticmethod
    def _record_collision(entity: Entity, other_type: str, state: ResolverState) -> None:
        collision = TypeCollision(entity_id=entity.id, kept_type=entity.type, other_type=other_type)
        if collision in state.collisions:
            return
        state.collisions.append(collision)
        logger.warning(
            "Entity %r already resolved as %s; ignoring type %s",
            entity.id,
            entity.type,
            other_type,
        )


def resolve(definitions: Iterable[NodeDefinition], rows: Iterable[Row]) -> dict[str, Entity]:
    if isinstance(definitions, NodeDefinitionRegistry):
        registry = definitions
    else:
        registry = NodeDefinitionRegistry(tuple(definitions))
    return EntityResolver(registry).resolve(rows).entities
