"""
Schema resources bundled with the project.

Deutsch:
    Mitgelieferte JSON-Schemata für Validierungen.
"""

from __future__ import annotations

__all__ = ["EDIT_PLAN_SCHEMA", "load_schema"]

from importlib import resources
from json import load
from typing import Any, Dict

EDIT_PLAN_SCHEMA = "edit_plan.schema.json"


def load_schema(name: str) -> Dict[str, Any]:
    """
    Load a JSON schema from the local schema package.

    Deutsch:
        Lädt ein JSON-Schema aus dem Schema-Paket.
    """

    with resources.files(__name__).joinpath(name).open("r", encoding="utf-8") as fh:
        return load(fh)
