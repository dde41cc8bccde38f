"""Shared value types for the group-interface generator.

All enums are str Enums so they render cleanly in reports and log lines.
All value dataclasses are frozen (immutable) for use as dict keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


# ─── Namespace constants ──────────────────────────────────────────────────────

XS_NS = "http://www.w3.org/2001/XMLSchema"

# Both the javax and jakarta binding namespaces are accepted for customizations
# and episode documents.
JAXB_NAMESPACES: frozenset[str] = frozenset({
    "http://java.sun.com/xml/ns/jaxb",
    "https://jakarta.ee/xml/ns/jaxb",
})
JAXB_NS = "https://jakarta.ee/xml/ns/jaxb"

# Namespace of the <interface ref="..."/> marker written into episodes.
INTERFACES_NS = "urn:group-interfaces:bindings"


# ─── Enums ────────────────────────────────────────────────────────────────────


class GroupKind(str, Enum):
    """The two kinds of named, reusable schema group declarations."""

    MODEL_GROUP = "group"
    ATTRIBUTE_GROUP = "attributeGroup"


class Compositor(str, Enum):
    """Model group compositor. Values match the XSD element local names."""

    SEQUENCE = "sequence"
    CHOICE = "choice"
    ALL = "all"


class ClassKind(str, Enum):
    CLASS = "class"
    INTERFACE = "interface"


# ─── Value types ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class QName:
    """Schema component identity: target namespace + local name."""

    namespace: str
    local: str

    def __str__(self) -> str:
        if self.namespace:
            return f"{{{self.namespace}}}{self.local}"
        return self.local

    @classmethod
    def from_clark(cls, value: str) -> QName:
        """Parse ``{ns}local`` (or a bare ``local``) into a QName."""
        if value.startswith("{") and "}" in value:
            ns, local = value[1:].split("}", 1)
            return cls(ns, local)
        return cls("", value)


@dataclass(frozen=True)
class Locator:
    """Source position of a schema component (1-based line, 0-based column)."""

    system_id: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.system_id}:{self.line}:{self.column}"
