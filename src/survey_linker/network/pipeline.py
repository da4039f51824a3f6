from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path

from survey_linker.settings import LinkerSettings, settings as default_settings

from .definitions import missing_fields
from .dynetml import DynetMLWriter
from .models import NodeDefinitionRegistry
from .reader import SurveyData, read_survey
from .resolver import EntityResolver, ResolverState

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LinkStats:
    rows: int
    entities: int
    ties: int
    links: int
    dangling: int
    collisions: int
    read_ms: float
    resolve_ms: float
    write_ms: float
    links_by_type: dict[str, int] = field(default_factory=dict)


class LinkerPipeline:
    """Data sheet in, DynetML file out."""

    def __init__(self, registry: NodeDefinitionRegistry, settings: LinkerSettings | None = None):
        self.registry = registry
        self.settings = settings or default_settings
        self.resolver = EntityResolver(
            registry,
            conjoiner=self.settings.conjoiner,
            ampersand_substitute=self.settings.ampersand_substitute,
        )
        self.writer = DynetMLWriter(
            escape_markup=self.settings.escape_markup,
            ampersand_substitute=self.settings.ampersand_substitute,
        )

    def read(self, data_path: str | os.PathLike[str], *, delimiter: str | None = None) -> SurveyData:
        data = read_survey(data_path, delimiter=delimiter or self.settings.file_delimiter)
        for name in missing_fields(self.registry, data.headers):
            logger.warning("Field %r is used by a node definition but is not a data header", name)
        return data

    def resolve(self, data: SurveyData) -> ResolverState:
        return self.resolver.resolve(data.rows)

    def run(
        self,
        data_path: str | os.PathLike[str],
        output_path: str | os.PathLike[str],
        *,
        network_id: str | None = None,
        delimiter: str | None = None,
    ) -> LinkStats:
        network_id = network_id or self.settings.network_id or Path(data_path).stem

        t0 = time.perf_counter()
        data = self.read(data_path, delimiter=delimiter)
        t1 = time.perf_counter()
        state = self.resolve(data)
        t2 = time.perf_counter()
        with open(output_path, "w", encoding=self.settings.output_encoding) as out:
            written = self.writer.write(state.entities, self.registry.known_types, network_id, out)
        t3 = time.perf_counter()

        return LinkStats(
            rows=state.rows,
            entities=len(state.entities),
            ties=state.ties,
            links=written.links,
            dangling=written.dangling,
            collisions=len(state.collisions),
            read_ms=(t1 - t0) * 1000.0,
            resolve_ms=(t2 - t1) * 1000.0,
            write_ms=(t3 - t2) * 1000.0,
            links_by_type=written.links_by_type,
        )
