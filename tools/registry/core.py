"""Core file helpers for the contract registry.

- Package-relative paths (bundled contract sources)
- YAML/JSON loading and writing with consistent encoding
- Flat ``key=value`` properties files shared between nodes
- Epoch-millisecond timestamps
"""

from __future__ import annotations

import json
import pathlib
import time
from typing import Any, Dict

import yaml

PACKAGE_ROOT = pathlib.Path(__file__).resolve().parent
CONTRACTS_DIR = PACKAGE_ROOT / "contracts"


def load_yaml(path: pathlib.Path) -> Any:
    """Load YAML file with UTF-8 encoding."""
    return yaml.safe_load(pathlib.Path(path).read_text(encoding="utf-8"))


def write_yaml(path: pathlib.Path, obj: Any) -> None:
    """Write YAML file, creating parent directories."""
    path = pathlib.Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(obj, default_flow_style=False, sort_keys=True), encoding="utf-8")


def load_json(path: pathlib.Path) -> Any:
    """Load JSON file with UTF-8 encoding."""
    return json.loads(pathlib.Path(path).read_text(encoding="utf-8"))


def write_json(path: pathlib.Path, obj: Any) -> None:
    """Write JSON with sorted keys and a trailing newline."""
    path = pathlib.Path(path)
    path.write_text(json.dumps(obj, sort_keys=True, indent=2) + "\n", encoding="utf-8")


def read_contract_file(name: str) -> str:
    """Read a bundled contract file (source or interface) by file name."""
    return (CONTRACTS_DIR / name).read_text(encoding="utf-8")


def parse_properties(text: str) -> Dict[str, str]:
    """Parse ``key=value`` / ``key: value`` lines.

    Blank lines and lines starting with ``#`` or ``!`` are ignored. Only the
    first separator splits; values keep any later ``=`` or ``:``.
    """
    props: Dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line[0] in "#!":
            continue
        positions = [i for i in (line.find("="), line.find(":")) if i >= 0]
        if not positions:
            props[line] = ""
            continue
        sep = min(positions)
        props[line[:sep].strip()] = line[sep + 1:].strip()
    return props


def read_properties(path: pathlib.Path) -> Dict[str, str]:
    return parse_properties(pathlib.Path(path).read_text(encoding="utf-8"))


def write_properties(path: pathlib.Path, props: Dict[str, str]) -> None:
    """Write properties sorted by key, creating parent directories."""
    path = pathlib.Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [f"{key}={value}" for key, value in sorted(props.items())]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def now_millis() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)
