"""
YAML export of loaded channel lists and application of edit plans.

An edit plan names channels per list, by ``record_id`` or ``name``, and the
changes to apply::

    lists:
      DVB-S:
        - record_id: 3
          rename: Das Erste HD
          number: 1
          favorites: AC
        - name: Teleshopping
          deleted: true

Deutsch:
    YAML-Export der Senderlisten und Anwenden von Änderungsplänen.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml
from jsonschema import Draft7Validator

from .models import Channel, ChannelDatabase, ChannelList, letters_to_favorites
from .schemas import EDIT_PLAN_SCHEMA, load_schema

log = logging.getLogger(__name__)


class EditError(Exception):
    """Raised when an edit plan is invalid or cannot be applied. / Änderungsplan ungültig."""


@dataclass
class ApplyOptions:
    strict: bool = False


@dataclass
class EditReport:
    applied: int = 0
    warnings: List[str] = field(default_factory=list)


def export_database(database: ChannelDatabase) -> Dict[str, Any]:
    lists: Dict[str, Any] = {}
    for channel_list in database.channel_lists.values():
        if not channel_list.channels:
            continue
        lists[channel_list.name] = {
            "read_only": channel_list.read_only,
            "channels": [_export_channel(channel) for channel in channel_list.channels],
        }
    return {
        "format_version": database.metadata.get("format_version"),
        "satellites": [
            {"id": sat.id, "name": sat.name, "position": sat.orbital_position}
            for sat in database.satellites.values()
        ],
        "lists": lists,
    }


def write_export(database: ChannelDatabase, path: Path) -> Path:
    path = Path(path)
    payload = export_database(database)
    with path.open("w", encoding="utf-8") as fh:
        yaml.safe_dump(payload, fh, sort_keys=False, allow_unicode=True)
    return path


def _export_channel(channel: Channel) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "record_id": channel.record_id,
        "number": channel.old_program_number,
        "name": channel.name,
        "type": channel.signal_type,
        "service_type": channel.service_type,
        "service_id": channel.service_id,
        "onid": channel.original_network_id,
        "tsid": channel.transport_stream_id,
        "frequency": _plain_number(channel.frequency),
        "deleted": channel.deleted,
        "hidden": channel.hidden,
        "encrypted": channel.encrypted,
        "favorites": channel.favorite_letters,
    }
    if channel.symbol_rate:
        entry["symbol_rate"] = channel.symbol_rate
    if channel.polarity.strip():
        entry["polarity"] = channel.polarity
    if channel.satellite:
        entry["satellite"] = channel.satellite
        entry["position"] = channel.orbital_position
    if channel.dvb_channel:
        entry["channel"] = channel.dvb_channel
    return entry


def _plain_number(value: Decimal) -> Union[int, float]:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def load_edit_plan(path: Path) -> Dict[str, Any]:
    """
    Read a YAML (or JSON) edit plan and validate it against the bundled schema.
    """

    path = Path(path)
    text = path.read_text(encoding="utf-8")
    try:
        data = json.loads(text) if path.suffix.lower() == ".json" else yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise EditError(f"cannot parse edit plan {path}: {exc}") from exc
    validate_edit_plan(data)
    return data


def validate_edit_plan(data: Any) -> None:
    validator = Draft7Validator(load_schema(EDIT_PLAN_SCHEMA))
    errors = sorted(validator.iter_errors(data), key=lambda err: list(err.path))
    if errors:
        messages = "; ".join(
            f"{'.'.join(str(part) for part in error.path) or '<root>'} -> {error.message}" for error in errors
        )
        raise EditError(f"edit plan failed schema validation: {messages}")


def apply_edit_plan(database: ChannelDatabase, plan: Dict[str, Any], options: ApplyOptions) -> EditReport:
    report = EditReport()
    for list_name, edits in plan.get("lists", {}).items():
        channel_list = database.channel_lists.get(list_name)
        if channel_list is None or not channel_list.channels:
            _warn(report, options, f"channel list {list_name} is empty or not present")
            continue
        if channel_list.read_only:
            _warn(report, options, f"channel list {list_name} is read-only")
            continue
        for edit in edits:
            targets = _select(channel_list, edit)
            if not targets:
                _warn(report, options, f"{list_name}: no channel matches {_describe(edit)}")
                continue
            if len(targets) > 1:
                log.debug("%s: %s matches %d channels", list_name, _describe(edit), len(targets))
            for channel in targets:
                _apply(channel, edit)
                report.applied += 1
    log.info("applied %d channel edits with %d warnings", report.applied, len(report.warnings))
    return report


def _select(channel_list: ChannelList, edit: Dict[str, Any]) -> List[Channel]:
    if "record_id" in edit:
        channel = channel_list.find_by_record_id(edit["record_id"])
        return [channel] if channel is not None else []
    return channel_list.find_by_name(edit["name"])


def _apply(channel: Channel, edit: Dict[str, Any]) -> None:
    if "rename" in edit:
        channel.rename(edit["rename"])
    if "number" in edit:
        channel.new_program_number = edit["number"]
    if "favorites" in edit:
        favorites = edit["favorites"]
        channel.favorites = letters_to_favorites(favorites) if isinstance(favorites, str) else favorites
    if "hidden" in edit:
        channel.hidden = edit["hidden"]
    if "deleted" in edit:
        channel.deleted = edit["deleted"]


def _describe(edit: Dict[str, Any]) -> str:
    if "record_id" in edit:
        return f"record_id {edit['record_id']}"
    return f"name {edit['name']!r}"


def _warn(report: EditReport, options: ApplyOptions, message: str) -> None:
    if options.strict:
        raise EditError(message)
    log.warning(message)
    report.warnings.append(message)
