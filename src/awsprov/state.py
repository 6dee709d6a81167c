"""Per-resource key/value state and its JSON file storage."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .schema import Field, Schema

logger = logging.getLogger(__name__)


class ResourceData:
    """
    State of one resource during a single handler operation.

    Holds three layers: the prior state read from the store, the planned
    values (configuration merged over prior state), and the values written by
    the handler during this operation. ``get`` reads the newest layer that has
    the key; ``has_change`` compares prior state with the plan.
    """

    def __init__(
        self,
        schema: Schema,
        state: Optional[Mapping[str, Any]] = None,
        config: Optional[Mapping[str, Any]] = None,
    ):
        """
        Initialize resource data.

        Args:
            schema: Schema of the resource type
            state: Prior state, including an ``id`` key (None for a new resource)
            config: Desired configuration (None for read-only operations)
        """
        self.schema = schema
        prior = dict(state or {})
        self._id: str = str(prior.pop("id", "") or "")
        self._old: Dict[str, Any] = {
            name: schema[name].normalize(value) for name, value in prior.items() if name in schema
        }
        self._planned: Dict[str, Any] = dict(self._old)
        self._written: Dict[str, Any] = {}
        self._new_resource = False

        if config is not None:
            for name, fld in schema.items():
                if not fld.configurable:
                    continue
                value = config.get(name)
                if value is None and fld.computed:
                    # optional + computed: keep whatever the remote side chose
                    continue
                self._planned[name] = fld.normalize(value)

    @property
    def id(self) -> str:
        return self._id

    def set_id(self, resource_id: Optional[str]) -> None:
        """Set the resource identity; an empty id marks the resource as absent."""
        self._id = resource_id or ""

    def is_new_resource(self) -> bool:
        return self._new_resource

    def mark_new_resource(self) -> None:
        self._new_resource = True

    def _field(self, key: str) -> Field:
        if key not in self.schema:
            raise KeyError(f"Invalid attribute name: {key}")
        return self.schema[key]

    def get(self, key: str) -> Any:
        fld = self._field(key)
        if key in self._written:
            return self._written[key]
        if key in self._planned:
            return self._planned[key]
        return fld.zero_value()

    def get_ok(self, key: str) -> Tuple[Any, bool]:
        """Return the value and whether it is set to a non-zero value."""
        value = self.get(key)
        return value, value != self._field(key).zero_value()

    def set(self, key: str, value: Any) -> None:
        self._written[key] = self._field(key).normalize(value)

    def plan(self, key: str, value: Any) -> None:
        """Override the planned value of a computed attribute."""
        self._planned[key] = self._field(key).normalize(value)

    def get_change(self, key: str) -> Tuple[Any, Any]:
        fld = self._field(key)
        old = self._old.get(key, fld.zero_value())
        new = self._planned.get(key, fld.zero_value())
        return old, new

    def has_change(self, key: str) -> bool:
        old, new = self.get_change(key)
        return old != new

    def has_changes(self, *keys: str) -> bool:
        return any(self.has_change(k) for k in keys)

    def has_changes_except(self, *keys: str) -> bool:
        return any(self.has_change(k) for k in self.schema if k not in keys)

    def changed_keys(self) -> List[str]:
        return [k for k in self.schema if self.has_change(k)]

    def state(self) -> Optional[Dict[str, Any]]:
        """Return the resulting state, or None if the resource is absent."""
        if not self._id:
            return None
        result: Dict[str, Any] = {"id": self._id}
        for name in self.schema:
            result[name] = self.get(name)
        return result


def redact(state: Optional[Mapping[str, Any]], schema: Schema) -> Optional[Dict[str, Any]]:
    """Copy of ``state`` with sensitive attributes masked, for display."""
    if state is None:
        return None
    masked = dict(state)
    for name in schema.sensitive_fields():
        if masked.get(name):
            masked[name] = "(sensitive)"
    return masked


class StateStore:
    """JSON-based storage for resource state records."""

    def __init__(self, state_file: Optional[str] = None):
        """Initialize the state store.

        Args:
            state_file: Path to the state file. Defaults to ~/.awsprov/state.json
        """
        if state_file:
            self.state_file = Path(state_file).expanduser()
        else:
            self.state_file = Path.home() / ".awsprov" / "state.json"

        self.state_file.parent.mkdir(parents=True, exist_ok=True)
        if not self.state_file.exists():
            self._write_state_file({"version": 1, "resources": {}})

    @staticmethod
    def address(resource_type: str, name: str) -> str:
        return f"{resource_type}.{name}"

    def _read_state_file(self) -> Dict:
        try:
            with open(self.state_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {"version": 1, "resources": {}}
        data.setdefault("resources", {})
        return data

    def _write_state_file(self, data: Dict) -> None:
        tmp_file = self.state_file.with_suffix(".tmp")
        with open(tmp_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True, default=str)
        tmp_file.replace(self.state_file)

    def get(self, resource_type: str, name: str) -> Optional[Dict[str, Any]]:
        """Return the stored state of a resource, or None."""
        record = self._read_state_file()["resources"].get(self.address(resource_type, name))
        if not record:
            return None
        return {"id": record["id"], **record.get("attributes", {})}

    def put(self, resource_type: str, name: str, state: Mapping[str, Any]) -> None:
        data = self._read_state_file()
        attributes = {k: v for k, v in state.items() if k != "id"}
        data["resources"][self.address(resource_type, name)] = {
            "type": resource_type,
            "name": name,
            "id": state["id"],
            "attributes": attributes,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        self._write_state_file(data)
        logger.debug(f"Stored state for {self.address(resource_type, name)}")

    def remove(self, resource_type: str, name: str) -> bool:
        data = self._read_state_file()
        removed = data["resources"].pop(self.address(resource_type, name), None)
        if removed is not None:
            self._write_state_file(data)
        return removed is not None

    def list(self, resource_type: Optional[str] = None) -> List[Dict[str, Any]]:
        records: Iterable[Dict[str, Any]] = self._read_state_file()["resources"].values()
        return sorted(
            (r for r in records if resource_type is None or r["type"] == resource_type),
            key=lambda r: (r["type"], r["name"]),
        )


