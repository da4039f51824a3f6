"""Survey network subsystem.

This module provides:
- Node definitions describing how rows turn into typed entities
- An entity resolver that deduplicates entities and ties each row's hub
- A DynetML writer for SNA tools such as ORA
- A delimited data-sheet reader and a pipeline joining the three
"""

from .definitions import DefinitionError, load_definitions, parse_definitions
from .dynetml import DynetMLWriter, render_dynetml, write_dynetml
from .models import Entity, NodeDefinition, NodeDefinitionRegistry, TypeCollision
from .pipeline import LinkerPipeline, LinkStats
from .reader import SurveyData, SurveyFormatError, read_survey
from .resolver import EntityResolver, ResolverState, resolve

__all__ = [
    "DefinitionError",
    "DynetMLWriter",
    "Entity",
    "EntityResolver",
    "LinkStats",
    "LinkerPipeline",
    "NodeDefinition",
    "NodeDefinitionRegistry",
    "ResolverState",
    "SurveyData",
    "SurveyFormatError",
    "TypeCollision",
    "load_definitions",
    "parse_definitions",
    "read_survey",
    "render_dynetml",
    "resolve",
    "write_dynetml",
]
