from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from core.errors import SnapshotFormatError
from core.schema import RR_DAYS

from .snapshot import PlanSnapshot, apply_snapshot, default_snapshot, snapshot_to_dict
from .transport import parse_preset

Source = Union[str, Path, Mapping[str, Any]]


def read_json(source: Source) -> Any:
    """Load a JSON document from a path, or pass a mapping through unchanged."""
    if isinstance(source, Mapping):
        return source
    try:
        with open(source, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except json.JSONDecodeError as exc:
        raise SnapshotFormatError(f"Could not parse JSON from {source}: {exc}") from exc


def load_snapshot(source: Source, *, base: Optional[PlanSnapshot] = None) -> PlanSnapshot:
    """
    Load an exported plan over `base` (a fresh default plan when omitted).
    """
    base = base if base is not None else default_snapshot()
    return apply_snapshot(base, read_json(source))


def save_snapshot(snapshot: PlanSnapshot, path: Union[str, Path]) -> None:
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(snapshot_to_dict(snapshot), fh, indent=2, ensure_ascii=False)


def load_retention_preset(source: Source) -> Dict[int, float]:
    """
    Read a preset shaped {"retention": {"1": 45, "7": 20, ...}} (or "anchors").
    Only the standard checkpoints are kept; missing ones become 0 (unset).
    """
    preset = parse_preset(read_json(source))
    anchors = preset.anchor_map()
    return {d: float(anchors.get(d, 0.0)) for d in RR_DAYS}
