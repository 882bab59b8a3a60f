"""
Private Record Store

Records registered with a visibility scope never reach the public registry;
they are kept in this node's private store. Stores raise ``OSError`` on I/O
failure and leave translation into registry errors to their callers.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from jsonschema import Draft202012Validator

from tools.registry.core import load_json, write_json
from tools.registry.errors import RecordValidationError
from tools.registry.models import CodeKind, Record
from tools.registry.observability import RegistryLayer, get_logger

logger = get_logger("store", RegistryLayer.STORE)


RECORD_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["address", "name", "code_kind", "created_at", "visibility_scope"],
    "properties": {
        "address": {"type": "string", "minLength": 1},
        "name": {"type": "string"},
        "interface_description": {"type": "string"},
        "source": {"type": "string"},
        "code_kind": {"enum": [kind.value for kind in CodeKind]},
        "created_at": {"type": "integer", "minimum": 0},
        "visibility_scope": {"type": "string"},
        "owner": {"type": ["string", "null"]},
    },
}

_record_validator = Draft202012Validator(RECORD_SCHEMA)


def validate_record_document(doc: Any, record_id: str = "") -> None:
    """Raise RecordValidationError if ``doc`` is not a valid record document."""
    errors = [f"{error.json_path}: {error.message}" for error in _record_validator.iter_errors(doc)]
    if errors:
        raise RecordValidationError(record_id, errors)


class PrivateStore(Protocol):
    """Key-value store of private records keyed by identifier."""

    def save(self, record: Record) -> None:
        ...

    def get_by_id(self, record_id: str) -> Optional[Record]:
        ...

    def list_ids(self) -> List[str]:
        ...


class InMemoryPrivateStore:
    """Thread-safe in-memory private store."""

    def __init__(self):
        self._records: Dict[str, Record] = {}
        self._lock = threading.RLock()

    def save(self, record: Record) -> None:
        with self._lock:
            self._records[record.address] = record

    def get_by_id(self, record_id: str) -> Optional[Record]:
        with self._lock:
            return self._records.get(record_id)

    def list_ids(self) -> List[str]:
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class FilePrivateStore:
    """
    Private store keeping one JSON document per record in a directory.

    File names are the hex encoding of the identifier, so ``list_ids`` reads
    names only and never opens a document. Documents are schema-checked on
    write and on read; a damaged document fails its own ``get_by_id``.
    """

    SUFFIX = ".record.json"

    def __init__(self, directory: Union[str, Path]):
        self._dir = Path(directory)
        self._lock = threading.RLock()

    @property
    def directory(self) -> Path:
        return self._dir

    def _path_for(self, record_id: str) -> Path:
        return self._dir / f"{record_id.encode('utf-8').hex()}{self.SUFFIX}"

    def _id_for(self, path: Path) -> Optional[str]:
        stem = path.name[: -len(self.SUFFIX)]
        try:
            return bytes.fromhex(stem).decode("utf-8")
        except ValueError:
            logger.warning("Ignoring unrecognized file in private store", operation="list", path=str(path))
            return None

    def save(self, record: Record) -> None:
        doc = record.to_document()
        validate_record_document(doc, record.address)

        with self._lock:
            self._dir.mkdir(parents=True, exist_ok=True)
            path = self._path_for(record.address)
            tmp = path.with_name(path.name + ".tmp")
            write_json(tmp, doc)
            os.replace(tmp, path)
        logger.debug("Saved private record", operation="save", address=record.address)

    def _load(self, path: Path) -> Record:
        try:
            doc = load_json(path)
        except json.JSONDecodeError as e:
            raise RecordValidationError(path.name, [f"not JSON: {e}"]) from e
        validate_record_document(doc, path.name)
        return Record.from_document(doc)

    def get_by_id(self, record_id: str) -> Optional[Record]:
        path = self._path_for(record_id)
        with self._lock:
            if not path.exists():
                return None
            return self._load(path)

    def list_ids(self) -> List[str]:
        with self._lock:
            if not self._dir.is_dir():
                return []
            ids = []
            for path in sorted(self._dir.glob(f"*{self.SUFFIX}")):
                record_id = self._id_for(path)
                if record_id is not None:
                    ids.append(record_id)
            return ids
