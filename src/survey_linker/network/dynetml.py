from __future__ import annotations

import io
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TextIO
from xml.sax.saxutils import escape

from survey_linker.settings import settings

from .models import Entity

logger = logging.getLogger(__name__)

NODE_CLASS = "Agent"
SOURCE_CLASS = "Respondent"

_QUOTE = {'"': "&quot;"}


@dataclass(slots=True)
class WriteStats:
    nodes: int = 0
    links: int = 0
    dangling: int = 0
    links_by_type: dict[str, int] = field(default_factory=dict)


class DynetMLWriter:
    """Serialize resolved entities as a DynetML meta-network.

    One nodeclass and one network per known type, in the given order.
    Entities whose type is not known are left out, and so are ties pointing
    at them. Ties to ids missing from the map are logged and skipped.

    Only '&' is replaced in values by default, so values holding '<', '>' or
    quotes produce malformed XML unless `escape_markup` is set.
    """

    def __init__(
        self,
        *,
        escape_markup: bool | None = None,
        ampersand_substitute: str | None = None,
    ):
        self.escape_markup = settings.escape_markup if escape_markup is None else escape_markup
        self.ampersand_substitute = (
            settings.ampersand_substitute if ampersand_substitute is None else ampersand_substitute
        )

    def write(
        self,
        entities: Mapping[str, Entity],
        known_types: Iterable[str],
        network_id: str,
        stream: TextIO,
    ) -> WriteStats:
        known_types = list(dict.fromkeys(known_types))
        stats = WriteStats()
        links = self._collect_links(entities, stats)

        stream.write('<?xml version="1.0" standalone="yes"?>')
        stream.write(f'\n<DynamicMetaNetwork id="{self._attr(network_id)}">')
        stream.write(f'\n\t<MetaNetwork id="{self._attr(network_id)}">')
        self._write_nodes(stream, entities, known_types, stats)
        self._write_networks(stream, links, known_types, stats)
        stream.write("\n\t</MetaNetwork>")
        stream.write("\n</DynamicMetaNetwork>")

        logger.info(
            "Wrote network %r: %d nodes, %d links, %d dangling ties skipped",
            network_id,
            stats.nodes,
            stats.links,
            stats.dangling,
        )
        return stats

    def _collect_links(self, entities: Mapping[str, Entity], stats: WriteStats) -> list[tuple[Entity, Entity]]:
        links: list[tuple[Entity, Entity]] = []
        for source in entities.values():
            for target_id in source.ties:
                target = entities.get(target_id)
                if target is None:
                    stats.dangling += 1
                    logger.warning("Missing entity: %s", target_id)
                    continue
                links.append((source, target))
        return links

    def _write_nodes(
        self,
        stream: TextIO,
        entities: Mapping[str, Entity],
        known_types: list[str],
        stats: WriteStats,
    ) -> None:
        stream.write("\n\t\t<nodes>")
        for node_type in known_types:
            stream.write(f'\n\t\t\t<nodeclass type="{NODE_CLASS}" id="{self._attr(node_type)}">')
            for entity in entities.values():
                if entity.type != node_type:
                    continue
                stream.write(f'\n\t\t\t\t<node id="{self._attr(entity.id)}">')
                for name, value in entity.characteristics.items():
                    stream.write(
                        f'\n\t\t\t\t\t<property id="{self._attr(name)}" value="{self._value(value)}"/>'
                    )
                stream.write("\n\t\t\t\t</node>")
                stats.nodes += 1
            stream.write("\n\t\t\t</nodeclass>")
        stream.write("\n\t\t</nodes>")

    def _write_networks(
        self,
        stream: TextIO,
        links: list[tuple[Entity, Entity]],
        known_types: list[str],
        stats: WriteStats,
    ) -> None:
        stream.write("\n\t\t<networks>")
        for node_type in known_types:
            target_type = self._attr(node_type)
            stream.write(
                f'\n\t\t\t<network sourceType="{NODE_CLASS}" source="{SOURCE_CLASS}"'
                f' targetType="{NODE_CLASS}" target="{target_type}"'
                f' id="{SOURCE_CLASS} x {target_type}"'
                ' isDirected="true" allowSelfLoops="false" isBinary="false">'
            )
            count = 0
            for source, target in links:
                if target.type != node_type:
                    continue
                stream.write(
                    f'\n\t\t\t\t<link source="{self._attr(source.id)}"'
                    f' target="{self._attr(target.id)}" value="1"/>'
                )
                count += 1
            stream.write("\n\t\t\t</network>")
            stats.links_by_type[node_type] = count
            stats.links += count
        stream.write("\n\t\t</networks>")

    def _value(self, value: str) -> str:
        return self._attr(value.replace("&", self.ampersand_substitute))

    def _attr(self, text: str) -> str:
        if not self.escape_markup:
            return text
        return escape(text, _QUOTE)


def write_dynetml(
    entities: Mapping[str, Entity],
    known_types: Iterable[str],
    network_id: str,
    stream: TextIO,
    *,
    escape_markup: bool | None = None,
) -> WriteStats:
    return DynetMLWriter(escape_markup=escape_markup).write(entities, known_types, network_id, stream)


def render_dynetml(
    entities: Mapping[str, Entity],
    known_types: Iterable[str],
    network_id: str,
    *,
    escape_markup: bool | None = None,
) -> str:
    buf = io.StringIO()
    write_dynetml(entities, known_types, network_id, buf, escape_markup=escape_markup)
    return buf.getvalue()
