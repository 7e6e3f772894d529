# src/logenrich/core/logging/sanitize.py
"""
Turn rich domain objects found in log context into plain mappings.

ORM instances must never reach json.dumps directly: relationships can pull
whole object graphs (or loop back to the parent), and lazy loaders would issue
SQL from inside a logging call. We keep only the *loaded* column attributes,
which drops relationships, hybrid/plain properties and anything else that is
not a mapped column.
"""

from typing import Any

from pydantic import BaseModel
from sqlalchemy.orm import InstanceState


def json_default(value: Any) -> str:
    """
    Fallback for json.dumps: coerce anything to a string, never raise.
    """
    try:
        return str(value)
    except Exception:
        return f"<unserializable {type(value).__name__}>"


def _instance_state(value: Any) -> InstanceState | None:
    # sqlalchemy.inspect() is not used: for an Engine it builds an Inspector,
    # which connects to the database. Mapped instances carry their state.
    if isinstance(value, type):
        return None
    state = getattr(value, "_sa_instance_state", None)
    return state if isinstance(state, InstanceState) else None


def is_domain_object(value: Any) -> bool:
    if isinstance(value, BaseModel):
        return True
    return _instance_state(value) is not None


def to_plain_mapping(obj: Any) -> dict[str, Any]:
    """
    Return the plain field mapping of a domain object.

      - SQLAlchemy mapped instance: loaded column attributes only. Unloaded or
        expired columns are skipped instead of being fetched.
      - pydantic model: model_dump().
    """
    if isinstance(obj, BaseModel):
        return obj.model_dump()

    state = _instance_state(obj)
    if state is None:
        raise TypeError(f"{type(obj).__name__} is not a mapped instance")

    loaded = state.dict
    return {
        attr.key: loaded[attr.key]
        for attr in state.mapper.column_attrs
        if attr.key in loaded
    }


def _sanitize_value(value: Any, seen: set[int]) -> Any:
    try:
        if is_domain_object(value):
            return to_plain_mapping(value)
    except Exception:
        return f"<unserializable {type(value).__name__}>"

    if isinstance(value, (dict, list)):
        if id(value) in seen:
            return value
        seen.add(id(value))
        _sanitize_container(value, seen)

    return value


def _sanitize_container(data: dict | list, seen: set[int]) -> None:
    if isinstance(data, dict):
        for key, value in data.items():
            data[key] = _sanitize_value(value, seen)
    else:
        for index, value in enumerate(data):
            data[index] = _sanitize_value(value, seen)


def sanitize_context(data: dict | list) -> dict | list:
    """
    Replace domain objects inside `data` (recursively, in place) by plain mappings.

    Nested dicts and lists are walked; a container already visited is not
    walked twice, so self-referencing structures terminate. Returns `data`.
    """
    _sanitize_container(data, {id(data)})
    return data


__all__ = ["json_default", "is_domain_object", "to_plain_mapping", "sanitize_context"]
