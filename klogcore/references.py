"""References to Kubernetes-style objects for use as log values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Tuple, runtime_checkable

_NULL = "null"


@runtime_checkable
class KMetadata(Protocol):
    """Anything that has a name and a namespace, like object metadata."""

    def get_name(self) -> str:
        """Return the object's name."""

    def get_namespace(self) -> str:
        """Return the object's namespace, empty for cluster-scoped objects."""


def _is_kmetadata(item: Any) -> bool:
    return not isinstance(item, type) and isinstance(item, KMetadata)


def _is_slice(arg: Any) -> bool:
    return isinstance(arg, (list, tuple))


@dataclass(frozen=True)
class ObjectRef:
    """A reference to an object by namespace and name."""

    name: str = ""
    namespace: str = ""

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.namespace}/{self.name}"
        return self.name

    def write_text(self) -> str:
        """Return the reference as quoted text for log lines."""
        return f'"{self}"'

    def marshal_log(self) -> dict:
        """Return the reference as a plain mapping; an empty namespace is left out."""
        value = {"name": self.name}
        if self.namespace:
            value["namespace"] = self.namespace
        return value

    def log_value(self) -> dict:
        """Return the reference as an ordered group of attributes."""
        group = {"name": self.name}
        if self.namespace:
            group["namespace"] = self.namespace
        return group


def kobj(obj: Optional[KMetadata]) -> ObjectRef:
    """Return a reference to an object with metadata; None yields an empty reference."""
    if obj is None:
        return ObjectRef()
    return ObjectRef(name=obj.get_name(), namespace=obj.get_namespace())


def kref(namespace: str, name: str) -> ObjectRef:
    """Return a reference built from namespace and name."""
    return ObjectRef(name=name, namespace=namespace)


def kobjs(arg: Any) -> Optional[List[ObjectRef]]:
    """Return references for a list of objects, or None if ``arg`` is not a suitable list.

    Deprecated: use kobj_slice, which delays the work until the value is logged.
    """
    if not _is_slice(arg):
        return None
    refs = []
    for item in arg:
        if not _is_kmetadata(item):
            return None
        refs.append(kobj(item))
    return refs


@dataclass(frozen=True)
class KObjSlice:
    """A list of objects logged as references, processed only when logged."""

    arg: Any

    def _process(self) -> Tuple[Optional[list], str]:
        if self.arg is None:
            return None, ""
        if not _is_slice(self.arg):
            return None, f"<KObjSlice needs a slice, got type {type(self.arg).__name__}>"
        refs: list = []
        for item in self.arg:
            if item is None:
                refs.append(None)
            elif _is_kmetadata(item):
                refs.append(kobj(item))
            else:
                return None, (
                    "<KObjSlice needs a slice of values implementing KMetadata, "
                    f"got type {type(item).__name__}>"
                )
        return refs, ""

    def __str__(self) -> str:
        refs, error = self._process()
        if error:
            return error
        items = ["<nil>" if ref is None else str(ref) for ref in refs or ()]
        return "[" + " ".join(items) + "]"

    def marshal_log(self) -> Any:
        """Return the list of references, or an error text if the argument is unsuitable."""
        refs, error = self._process()
        if error:
            return error
        return refs

    def write_text(self) -> str:
        """Return the references as a bracketed list of quoted texts."""
        if self.arg is None:
            return _NULL
        if not _is_slice(self.arg):
            return f'"<KObjSlice needs a slice, got type {type(self.arg).__name__}>"'
        parts = []
        for item in self.arg:
            if item is None:
                parts.append(_NULL)
            elif _is_kmetadata(item):
                parts.append(kobj(item).write_text())
            else:
                parts.append(
                    '"<KObjSlice needs a slice of values implementing KMetadata, '
                    f'got type {type(item).__name__}>"'
                )
                break
        return "[" + ",".join(parts) + "]"

    def log_value(self) -> Any:
        """Return the same value as marshal_log for structured handlers."""
        return self.marshal_log()


def kobj_slice(arg: Any) -> KObjSlice:
    """Wrap a list of objects so it gets logged as references."""
    return KObjSlice(arg)