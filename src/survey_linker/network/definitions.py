from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable
from typing import Any

from pydantic import TypeAdapter, ValidationError

from .models import NodeDefinition, NodeDefinitionRegistry

logger = logging.getLogger(__name__)

_DEFINITIONS = TypeAdapter(list[NodeDefinition])


class DefinitionError(ValueError):
    """Node definitions could not be parsed or validated."""


def parse_definitions(payload: Any) -> NodeDefinitionRegistry:
    """Build a registry from decoded JSON.

    Accepts a list of definitions or an object with a "definitions" list.
    Both snake_case and camelCase keys are understood.
    """
    if isinstance(payload, dict) and "definitions" in payload:
        payload = payload["definitions"]
    try:
        definitions = _DEFINITIONS.validate_python(payload)
    except ValidationError as e:
        raise DefinitionError(f"invalid node definitions:\n{e}") from e
    return NodeDefinitionRegistry(tuple(definitions))


def load_definitions(path: str | os.PathLike[str]) -> NodeDefinitionRegistry:
    with open(path, encoding="utf-8") as f:
        try:
            payload = json.load(f)
        except UnicodeDecodeError as e:
            raise DefinitionError(f"{path} is not UTF-8 text: {e}") from e
        except json.JSONDecodeError as e:
            raise DefinitionError(f"{path} is not valid JSON: {e}") from e
    registry = parse_definitions(payload)
    logger.info("Loaded %d node definitions (%s)", len(registry), ", ".join(registry.known_types))
    return registry


def missing_fields(registry: NodeDefinitionRegistry, headers: Iterable[str]) -> list[str]:
    """Fields named by a definition that the data sheet does not have."""
    available = set(headers)
    return [name for name in registry.referenced_fields if name not in available]
