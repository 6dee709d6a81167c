"""Resource tag handling: default tags, ignored tags and per-service tag updates."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

logger = logging.getLogger(__name__)

AWS_TAG_PREFIX = "aws:"


@dataclass
class IgnoreTagsConfig:
    """Tag keys (exact or by prefix) that are never managed."""

    keys: List[str] = field(default_factory=list)
    key_prefixes: List[str] = field(default_factory=list)

    def ignores(self, key: str) -> bool:
        return key in self.keys or any(key.startswith(p) for p in self.key_prefixes)


@dataclass
class DefaultTagsConfig:
    """Provider-level tags applied to every taggable resource."""

    tags: Dict[str, str] = field(default_factory=dict)

    def merge_tags(self, tags: "KeyValueTags") -> "KeyValueTags":
        """Return default tags overridden by ``tags``."""
        return KeyValueTags(self.tags).merge(tags)


class KeyValueTags(Mapping[str, str]):
    """Immutable string-to-string tag mapping."""

    def __init__(self, tags: Optional[Mapping[str, Any]] = None):
        self._tags: Dict[str, str] = {
            str(k): "" if v is None else str(v) for k, v in (tags or {}).items()
        }

    @classmethod
    def from_map(cls, tags: Optional[Mapping[str, Any]]) -> "KeyValueTags":
        return cls(tags)

    @classmethod
    def from_aws_list(cls, tags: Optional[Iterable[Dict[str, Any]]]) -> "KeyValueTags":
        """Build tags from the ``[{"Key": ..., "Value": ...}]`` shape used by SSM and EMR."""
        return cls({t["Key"]: t.get("Value", "") for t in tags or []})

    def __getitem__(self, key: str) -> str:
        return self._tags[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def __repr__(self) -> str:
        return f"KeyValueTags({self._tags!r})"

    def ignore_aws(self) -> "KeyValueTags":
        """Drop tags whose keys use the reserved ``aws:`` prefix."""
        return KeyValueTags({k: v for k, v in self._tags.items() if not k.startswith(AWS_TAG_PREFIX)})

    def ignore_config(self, config: Optional[IgnoreTagsConfig]) -> "KeyValueTags":
        if config is None:
            return self
        return KeyValueTags({k: v for k, v in self._tags.items() if not config.ignores(k)})

    def remove_default_config(self, config: Optional[DefaultTagsConfig]) -> "KeyValueTags":
        """Drop tags that were injected by the default tags configuration.

        A tag is only dropped when both its key and value match the default,
        so a resource-level override of a default key is kept.
        """
        if config is None or not config.tags:
            return self
        return KeyValueTags({k: v for k, v in self._tags.items() if config.tags.get(k) != v})

    def merge(self, other: Optional[Mapping[str, str]]) -> "KeyValueTags":
        merged = dict(self._tags)
        merged.update(KeyValueTags(other or {})._tags)
        return KeyValueTags(merged)

    def removed(self, new: Mapping[str, str]) -> "KeyValueTags":
        """Tags present here but absent from ``new``."""
        return KeyValueTags({k: v for k, v in self._tags.items() if k not in new})

    def updated(self, old: Mapping[str, str]) -> "KeyValueTags":
        """Tags here that are new or changed compared to ``old``."""
        return KeyValueTags({k: v for k, v in self._tags.items() if old.get(k) != v})

    def keys_list(self) -> List[str]:
        return sorted(self._tags)

    def to_map(self) -> Dict[str, str]:
        return dict(self._tags)

    def to_aws_list(self) -> List[Dict[str, str]]:
        return [{"Key": k, "Value": v} for k, v in sorted(self._tags.items())]


def set_tags_diff(data: Any, default_tags: Optional[DefaultTagsConfig]) -> None:
    """
    Plan ``tags_all`` as the default tags merged with the configured ``tags``.

    Called before create and update so that ``has_change("tags_all")`` reflects
    changes to either the resource tags or the provider's default tags.
    """
    if "tags_all" not in data.schema:
        return
    resource_tags = KeyValueTags(data.get("tags"))
    if default_tags is not None:
        duplicated = sorted(k for k, v in resource_tags.items() if default_tags.tags.get(k) == v)
        if duplicated:
            logger.warning(
                f"Resource tags {duplicated} repeat default tags with the same value and will "
                "not be reported in tags on read; remove them from the resource configuration"
            )
    merged = (default_tags or DefaultTagsConfig()).merge_tags(resource_tags).ignore_aws()
    data.plan("tags_all", merged.to_map())


def tags_for_create(
    configured: Optional[Mapping[str, str]], default_tags: Optional[DefaultTagsConfig]
) -> KeyValueTags:
    """Tags sent with a create request: defaults merged with configured tags, no ``aws:`` keys."""
    return (default_tags or DefaultTagsConfig()).merge_tags(KeyValueTags(configured)).ignore_aws()


def flatten_remote_tags(
    data: Any,
    remote: KeyValueTags,
    default_tags: Optional[DefaultTagsConfig],
    ignore_tags: Optional[IgnoreTagsConfig],
) -> None:
    """Write remote tags back to state.

    ``tags_all`` receives every managed tag; ``tags`` receives the same set
    minus tags injected by the default tags configuration.
    """
    tags = remote.ignore_aws().ignore_config(ignore_tags)
    data.set("tags", tags.remove_default_config(default_tags).to_map())
    data.set("tags_all", tags.to_map())


def update_guardduty_tags(client: Any, arn: str, old: Mapping[str, str], new: Mapping[str, str]) -> None:
    """Apply a tag change to a GuardDuty resource identified by ARN."""
    old_tags = KeyValueTags(old).ignore_aws()
    new_tags = KeyValueTags(new).ignore_aws()

    removed = old_tags.removed(new_tags)
    if removed:
        logger.debug(f"Untagging GuardDuty resource {arn}: {removed.keys_list()}")
        client.untag_resource(ResourceArn=arn, TagKeys=removed.keys_list())

    updated = new_tags.updated(old_tags)
    if updated:
        logger.debug(f"Tagging GuardDuty resource {arn}: {updated.keys_list()}")
        client.tag_resource(ResourceArn=arn, Tags=updated.to_map())


def update_emr_tags(client: Any, resource_id: str, old: Mapping[str, str], new: Mapping[str, str]) -> None:
    """Apply a tag change to an EMR resource identified by its id."""
    old_tags = KeyValueTags(old).ignore_aws()
    new_tags = KeyValueTags(new).ignore_aws()

    removed = old_tags.removed(new_tags)
    if removed:
        logger.debug(f"Removing tags from EMR resource {resource_id}: {removed.keys_list()}")
        client.remove_tags(ResourceId=resource_id, TagKeys=removed.keys_list())

    updated = new_tags.updated(old_tags)
    if updated:
        logger.debug(f"Adding tags to EMR resource {resource_id}: {updated.keys_list()}")
        client.add_tags(ResourceId=resource_id, Tags=updated.to_aws_list())
