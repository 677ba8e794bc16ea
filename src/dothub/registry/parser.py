"""decoding and flattening of the hub file."""

from typing import Any, Dict, Iterable, List, Optional

import yaml

from ..domain.errors import ParseError
from ..domain.models import ManySources, RegistryEntry, SingleSource, SourceValue


def _as_single(value: Any) -> Optional[SingleSource]:
    if isinstance(value, str):
        return SingleSource(url=value)
    return None


def _as_many(value: Any) -> Optional[ManySources]:
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return ManySources(urls=value)
    return None


def decode_source_value(key: str, value: Any) -> SourceValue:
    """decode one hub value, trying the single-url shape before the list shape."""
    for decoder in (_as_single, _as_many):
        decoded = decoder(value)
        if decoded is not None:
            return decoded
    raise ParseError(
        f"invalid value for '{key}': expected a url or a list of urls, got {type(value).__name__}"
    )


def parse_registry(text: str) -> Dict[str, SourceValue]:
    """
    parse hub file text into a mapping of type to source value.

    raises:
        ParseError: if the document is malformed or not a mapping of
            string keys to a url or list of urls
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ParseError(f"hub file is not valid YAML: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ParseError(f"hub file must be a mapping, got {type(data).__name__}")

    registry = {}
    for key, value in data.items():
        if not isinstance(key, str):
            raise ParseError(f"hub file keys must be strings, got {key!r}")
        registry[key] = decode_source_value(key, value)
    return registry


def normalize_filters(types: Iterable[str]) -> set:
    """lower-case requested types, splitting comma separated values."""
    filters = set()
    for t in types or []:
        for part in t.split(","):
            part = part.strip().lower()
            if part:
                filters.add(part)
    return filters


def flatten(registry: Dict[str, SourceValue], filters: Optional[Iterable[str]] = None) -> List[RegistryEntry]:
    """
    flatten the registry into (type, url) entries in document order.

    an empty filter set keeps every entry; otherwise only entries whose type
    case-insensitively matches a filter are kept.
    """
    wanted = {f.lower() for f in filters} if filters else set()

    entries = []
    for type_tag, value in registry.items():
        if wanted and type_tag.lower() not in wanted:
            continue
        for url in value.urls:
            entries.append(RegistryEntry(type=type_tag, source_url=url))
    return entries
