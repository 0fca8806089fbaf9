from collections.abc import Mapping, MutableMapping
from typing import Any

from pydantic import BaseModel, ValidationError

from docfacade.database.core.exceptions import DocumentDecodeError


def _describe(target: Any) -> str:
    if isinstance(target, type):
        return target.__name__
    return type(target).__name__


def decode_document(document: Mapping[str, Any], target: Any = None) -> Any:
    """Decode a raw document into ``target``.

    Args:
        document: The document as returned by the store.
        target: ``None``, a pydantic model class, a pydantic model instance or a mutable mapping. Instances are
            populated in place, and only once the whole document has been validated.

    Returns:
        The decoded value: a ``dict`` copy, a new model instance, or the populated target itself.

    Raises:
        DocumentDecodeError: If the document does not fit the target's shape.
        TypeError: If ``target`` is none of the supported kinds.
    """
    if target is None:
        return dict(document)
    if isinstance(target, type):
        if not issubclass(target, BaseModel):
            raise TypeError(f"cannot decode into {target.__name__}: class targets must be pydantic models")
    elif not isinstance(target, (BaseModel, MutableMapping)):
        raise TypeError(f"cannot decode into {_describe(target)}: expected a pydantic model or a mutable mapping")

    try:
        if isinstance(target, type):
            return target.model_validate(document)
        if isinstance(target, BaseModel):
            decoded = type(target).model_validate(document)
            for field_name in type(target).model_fields:
                setattr(target, field_name, getattr(decoded, field_name))
            return target
    except ValidationError as e:
        raise DocumentDecodeError(f"failed to decode document into {_describe(target)}: {e}") from e

    target.clear()
    target.update(document)
    return target
