"""Access to parsed instances: plain JSON dicts or fhir.resources models."""
from typing import Any, Dict, Iterator, Optional, Tuple


def as_resource(instance: Any) -> Dict[str, Any]:
    if isinstance(instance, dict):
        return instance

    if hasattr(instance, "model_dump"):
        data = instance.model_dump(by_alias=True, exclude_none=True, mode="json")
        if "resourceType" not in data and hasattr(instance, "get_resource_type"):
            data["resourceType"] = instance.get_resource_type()
        return data

    raise TypeError(f"cannot validate instance of type {type(instance).__name__}")


def is_resource(node: Any) -> bool:
    return isinstance(node, dict) and isinstance(node.get("resourceType"), str)


def iter_resources(
    resource: Dict[str, Any], location: Optional[str] = None
) -> Iterator[Tuple[Dict[str, Any], str]]:
    """*resource* and every resource nested in it, in document order."""
    location = location or resource.get("resourceType")
    yield resource, location
    yield from _iter_nested(resource, location)


def _iter_nested(node: Dict[str, Any], location: str) -> Iterator[Tuple[Dict[str, Any], str]]:
    for key, value in node.items():
        if key.startswith("_"):
            continue
        children = enumerate(value) if isinstance(value, list) else [(None, value)]
        for i, child in children:
            if not isinstance(child, dict):
                continue
            child_location = f"{location}.{key}" if i is None else f"{location}.{key}[{i}]"
            if is_resource(child):
                yield from iter_resources(child, child_location)
            else:
                yield from _iter_nested(child, child_location)
