"""
Contract Registry Data Model

A Record is one contract's registered metadata. Public records live in the
on-chain registry contract; records with a visibility scope live only in
the node's private store.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional

from tools.registry.errors import CodeKindError


REGISTRY_CONTRACT_NAME = "ContractRegistry"

# Derived scope reported for private records this node cannot read.
OPAQUE_SCOPE = "private"


# =============================================================================
# CODE KIND
# =============================================================================

class CodeKind(Enum):
    """Kind of payload held in a record's source field."""
    SOLIDITY = "solidity"
    BYTECODE = "bytecode"

    @classmethod
    def decode(cls, value: Any, subject: str = "") -> "CodeKind":
        """Decode a code kind string. Unknown values raise CodeKindError."""
        if isinstance(value, CodeKind):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise CodeKindError(str(value), subject=subject) from None


# =============================================================================
# VISIBILITY
# =============================================================================

class VisibilityKind(Enum):
    """Visibility states of a record."""
    PUBLIC = "public"
    PRIVATE = "private"      # Private group, payload readable from this node
    OPAQUE = "opaque"        # Private group, payload not readable from this node


@dataclass(frozen=True)
class Visibility:
    """
    Tagged visibility of a record.

    The group name of a private record and the derived "this node cannot
    read it" state are kept apart; ``scope`` renders the flat string form
    consumers expect.
    """
    kind: VisibilityKind = VisibilityKind.PUBLIC
    group: str = ""

    @classmethod
    def public(cls) -> "Visibility":
        return cls(VisibilityKind.PUBLIC)

    @classmethod
    def private(cls, group: str) -> "Visibility":
        if not group or not group.strip():
            raise ValueError("private visibility requires a group")
        if group.strip() == OPAQUE_SCOPE:
            raise ValueError(f"{OPAQUE_SCOPE!r} is reserved for records this node cannot read")
        return cls(VisibilityKind.PRIVATE, group)

    @classmethod
    def from_scope(cls, scope: Optional[str]) -> "Visibility":
        """Build visibility from a stored scope string (blank means public)."""
        if scope is None or not scope.strip():
            return cls.public()
        return cls.private(scope)

    def as_opaque(self) -> "Visibility":
        """Mark a private record as unreadable from this node."""
        if self.kind == VisibilityKind.PUBLIC:
            raise ValueError("public records cannot be opaque")
        return Visibility(VisibilityKind.OPAQUE, self.group)

    @property
    def is_public(self) -> bool:
        return self.kind == VisibilityKind.PUBLIC

    @property
    def is_opaque(self) -> bool:
        return self.kind == VisibilityKind.OPAQUE

    @property
    def scope(self) -> str:
        if self.kind == VisibilityKind.PUBLIC:
            return ""
        if self.kind == VisibilityKind.OPAQUE:
            return OPAQUE_SCOPE
        return self.group


# =============================================================================
# RECORD
# =============================================================================

@dataclass(frozen=True)
class Record:
    """
    Registered metadata of a single contract.

    ``created_at`` is epoch milliseconds. Records are immutable; visibility
    changes produce a new record via ``with_visibility``.
    """
    address: str
    name: str
    interface_description: str
    source: str
    code_kind: CodeKind
    created_at: int
    visibility: Visibility = field(default_factory=Visibility.public)
    owner: Optional[str] = None

    @property
    def id(self) -> str:
        return self.address

    @property
    def visibility_scope(self) -> str:
        return self.visibility.scope

    @property
    def is_private(self) -> bool:
        return not self.visibility.is_public

    def with_visibility(self, visibility: Visibility) -> "Record":
        return replace(self, visibility=visibility)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.address,
            "address": self.address,
            "name": self.name,
            "interface_description": self.interface_description,
            "source": self.source,
            "code_kind": self.code_kind.value,
            "created_at": self.created_at,
            "visibility_scope": self.visibility_scope,
            "owner": self.owner,
        }

    def to_document(self) -> Dict[str, Any]:
        """Storage form for the private store (keeps the real group name)."""
        return {
            "address": self.address,
            "name": self.name,
            "interface_description": self.interface_description,
            "source": self.source,
            "code_kind": self.code_kind.value,
            "created_at": self.created_at,
            "visibility_scope": self.visibility.group,
            "owner": self.owner,
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Record":
        address = doc["address"]
        return cls(
            address=address,
            name=doc.get("name", ""),
            interface_description=doc.get("interface_description", ""),
            source=doc.get("source", ""),
            code_kind=CodeKind.decode(doc.get("code_kind", ""), subject=address),
            created_at=int(doc.get("created_at", 0)),
            visibility=Visibility.from_scope(doc.get("visibility_scope", "")),
            owner=doc.get("owner"),
        )


def is_registry_name(name: Optional[str]) -> bool:
    """
    True when ``name`` names the registry contract itself.

    Compilers prefix contract names with ":" or "<file>:", so only the part
    after the last colon is compared, ignoring case.
    """
    if not name:
        return False
    return name.rsplit(":", 1)[-1].strip().lower() == REGISTRY_CONTRACT_NAME.lower()


def is_zero_address(address: Optional[str]) -> bool:
    """True for the all-zero address sentinel (``0x00``, ``0x000...0``, ``0x``)."""
    if address is None:
        return False
    value = address.strip().lower()
    if not value.startswith("0x"):
        return False
    return set(value[2:]) <= {"0"}
