"""Flat attribute schemas for resource handlers and their validators."""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence

# A validator returns a list of error messages for one field value.
Validator = Callable[[str, Any], List[str]]


class FieldType(str, Enum):
    """Attribute value types."""

    STRING = "string"
    BOOL = "bool"
    INT = "int"
    SET = "set"
    MAP = "map"


ZERO_VALUES: Dict[FieldType, Any] = {
    FieldType.STRING: "",
    FieldType.BOOL: False,
    FieldType.INT: 0,
    FieldType.SET: [],
    FieldType.MAP: {},
}


@dataclass
class Field:
    """Definition of one resource attribute."""

    type: FieldType
    required: bool = False
    optional: bool = False
    computed: bool = False
    force_new: bool = False
    sensitive: bool = False
    validators: List[Validator] = field(default_factory=list)
    min_items: Optional[int] = None
    max_items: Optional[int] = None

    @property
    def configurable(self) -> bool:
        return self.required or self.optional

    def zero_value(self) -> Any:
        zero = ZERO_VALUES[self.type]
        return type(zero)() if isinstance(zero, (list, dict)) else zero

    def normalize(self, value: Any) -> Any:
        """Coerce ``value`` to this field's canonical representation."""
        if value is None:
            return self.zero_value()
        if self.type == FieldType.SET:
            return sorted({str(v) for v in value})
        if self.type == FieldType.MAP:
            return {str(k): "" if v is None else str(v) for k, v in dict(value).items()}
        if self.type == FieldType.BOOL:
            return bool(value)
        if self.type == FieldType.INT:
            return int(value)
        return str(value)

    def check_type(self, name: str, value: Any) -> List[str]:
        if value is None:
            return []
        expected = {
            FieldType.STRING: (str,),
            FieldType.BOOL: (bool,),
            FieldType.INT: (int,),
            FieldType.SET: (list, tuple, set, frozenset),
            FieldType.MAP: (dict,),
        }[self.type]
        if self.type == FieldType.INT and isinstance(value, bool):
            return [f"{name}: expected int, got bool"]
        if not isinstance(value, expected):
            return [f"{name}: expected {self.type.value}, got {type(value).__name__}"]
        if self.type == FieldType.SET and not all(isinstance(v, str) for v in value):
            return [f"{name}: all elements must be strings"]
        if self.type == FieldType.MAP and not all(isinstance(v, str) for v in value.values()):
            return [f"{name}: all values must be strings"]
        return []


class Schema(Mapping[str, Field]):
    """Named collection of fields describing one resource type."""

    def __init__(self, fields: Dict[str, Field]):
        self._fields = dict(fields)

    def __getitem__(self, name: str) -> Field:
        return self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def validate(self, config: Mapping[str, Any]) -> List[str]:
        """
        Validate a resource configuration.

        Args:
            config: Desired attribute values

        Returns:
            List of error messages, empty if the configuration is valid
        """
        errors: List[str] = []

        for name in config:
            if name not in self._fields:
                errors.append(f"{name}: unsupported argument")
            elif not self._fields[name].configurable and config[name] is not None:
                errors.append(f"{name}: computed attribute cannot be set")

        for name, fld in self._fields.items():
            value = config.get(name)
            if value is None:
                if fld.required:
                    errors.append(f"{name}: required argument is missing")
                continue
            if not fld.configurable:
                continue

            type_errors = fld.check_type(name, value)
            if type_errors:
                errors.extend(type_errors)
                continue

            if fld.type == FieldType.SET:
                count = len(set(value))
                if fld.min_items is not None and count < fld.min_items:
                    errors.append(f"{name}: attribute supports {fld.min_items} item minimum, got {count}")
                if fld.max_items is not None and count > fld.max_items:
                    errors.append(f"{name}: attribute supports {fld.max_items} item maximum, got {count}")

            for validator in fld.validators:
                errors.extend(validator(name, value))

        return errors

    def requires_replacement(self, data: Any) -> List[str]:
        """Return the force-new fields whose planned value differs from prior state."""
        return [name for name, fld in self._fields.items() if fld.force_new and data.has_change(name)]

    def sensitive_fields(self) -> List[str]:
        return [name for name, fld in self._fields.items() if fld.sensitive]


RFC3339_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})$"
)


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC3339 timestamp into an aware datetime."""
    if not RFC3339_PATTERN.match(value):
        raise ValueError(f"{value!r} is not a valid RFC3339 timestamp")
    normalized = value[:-1] + "+00:00" if value[-1] in "Zz" else value
    normalized = normalized.replace("t", "T")
    # fromisoformat only accepts 3 or 6 fractional digits on older interpreters
    match = re.match(r"^(.*?\.)(\d+)(.*)$", normalized)
    if match:
        normalized = f"{match.group(1)}{match.group(2)[:6].ljust(6, '0')}{match.group(3)}"
    return datetime.fromisoformat(normalized)


def format_rfc3339(value: Optional[datetime]) -> str:
    """Format a datetime as an RFC3339 UTC timestamp (empty string for None)."""
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def validate_rfc3339(name: str, value: Any) -> List[str]:
    try:
        parse_rfc3339(value)
    except ValueError:
        return [f'{name}: "{value}" is not a valid RFC3339 timestamp']
    return []


def string_in_slice(valid: Sequence[str]) -> Validator:
    """Validator accepting only one of ``valid`` (case-sensitive)."""

    def validator(name: str, value: Any) -> List[str]:
        if value not in valid:
            return [f"{name}: expected to be one of {list(valid)}, got {value}"]
        return []

    return validator


def string_len_between(minimum: int, maximum: int) -> Validator:
    def validator(name: str, value: Any) -> List[str]:
        if not minimum <= len(value) <= maximum:
            return [
                f"{name}: expected length to be in the range ({minimum} - {maximum}), got {value}"
            ]
        return []

    return validator


ARN_PATTERN = re.compile(r"^arn:[\w-]+:[\w-]+:[\w-]*:(\d{12})?:.+$")


def valid_arn(name: str, value: Any) -> List[str]:
    if value == "":
        return []
    if not ARN_PATTERN.match(value):
        return [f'{name}: invalid ARN ("{value}")']
    return []


def tags_schema(force_new: bool = False) -> Field:
    return Field(FieldType.MAP, optional=True, force_new=force_new)


def tags_all_schema() -> Field:
    return Field(FieldType.MAP, computed=True)
