"""Handler for GuardDuty threat intelligence sets (``aws_guardduty_threatintelset``)."""

import logging
from typing import Any, Dict, Optional, Tuple

from botocore.exceptions import ClientError

from ..context import OperationContext
from ..errors import (
    InvalidIdentifierError,
    ResourceNotFoundError,
    ResourceOperationError,
    UnexpectedStateError,
    WaitTimeoutError,
)
from ..schema import Field, FieldType, Schema, string_in_slice, tags_all_schema, tags_schema
from ..state import ResourceData
from ..tags import KeyValueTags, flatten_remote_tags, tags_for_create, update_guardduty_tags
from ..utils.retry import aws_error_message_contains
from ..utils.waiter import wait_for_state
from .base import ResourceHandler, register_resource

logger = logging.getLogger(__name__)

THREAT_INTEL_SET_FORMATS = ["TXT", "STIX", "OTX_CSV", "ALIEN_VAULT", "PROOF_POINT", "FIRE_EYE"]

STATUS_ACTIVATING = "ACTIVATING"
STATUS_ACTIVE = "ACTIVE"
STATUS_DEACTIVATING = "DEACTIVATING"
STATUS_INACTIVE = "INACTIVE"
STATUS_DELETE_PENDING = "DELETE_PENDING"
STATUS_DELETED = "DELETED"

CREATE_PENDING = [STATUS_ACTIVATING, STATUS_DEACTIVATING]
CREATE_TARGET = [STATUS_ACTIVE, STATUS_INACTIVE]
DELETE_PENDING = [
    STATUS_ACTIVE,
    STATUS_ACTIVATING,
    STATUS_INACTIVE,
    STATUS_DEACTIVATING,
    STATUS_DELETE_PENDING,
]
DELETE_TARGET = [STATUS_DELETED]

WAIT_ERRORS = (ClientError, WaitTimeoutError, UnexpectedStateError, ResourceNotFoundError)

DETECTOR_NOT_OWNED_MESSAGE = (
    "The request is rejected because the input detectorId is not owned by the current account."
)

THREAT_INTEL_SET_SCHEMA = Schema(
    {
        "arn": Field(FieldType.STRING, computed=True),
        "detector_id": Field(FieldType.STRING, required=True, force_new=True),
        "name": Field(FieldType.STRING, required=True),
        "format": Field(
            FieldType.STRING,
            required=True,
            force_new=True,
            validators=[string_in_slice(THREAT_INTEL_SET_FORMATS)],
        ),
        "location": Field(FieldType.STRING, required=True),
        "activate": Field(FieldType.BOOL, required=True),
        "tags": tags_schema(),
        "tags_all": tags_all_schema(),
    }
)


def encode_threat_intel_set_id(detector_id: str, threat_intel_set_id: str) -> str:
    return f"{detector_id}:{threat_intel_set_id}"


def decode_threat_intel_set_id(resource_id: str) -> Tuple[str, str]:
    """
    Split a composite threat intel set identifier.

    Args:
        resource_id: Identifier of the form ``<detector id>:<threat intel set id>``

    Returns:
        Tuple of (threat intel set id, detector id)

    Raises:
        InvalidIdentifierError: If the identifier does not have exactly two parts
    """
    parts = resource_id.split(":")
    if len(parts) != 2:
        raise InvalidIdentifierError(
            "GuardDuty ThreatIntelSet ID must be of the form <Detector ID>:<ThreatIntelSet ID>, "
            f"was provided: {resource_id}",
            resource_id=resource_id,
        )
    return parts[1], parts[0]


def threat_intel_set_arn(
    partition: str, region: str, account_id: str, detector_id: str, threat_intel_set_id: str
) -> str:
    return (
        f"arn:{partition}:guardduty:{region}:{account_id}:"
        f"detector/{detector_id}/threatintelset/{threat_intel_set_id}"
    )


@register_resource("aws_guardduty_threatintelset")
class ThreatIntelSetHandler(ResourceHandler):
    """
    Manages a GuardDuty threat intelligence set attached to a detector.

    Creation and deletion are asynchronous on the GuardDuty side, so both
    poll the set's status until it settles.
    """

    schema = THREAT_INTEL_SET_SCHEMA

    def _client(self) -> Any:
        return self.meta.client_manager.get_guardduty_client()

    def _decode_id(self, data: ResourceData, operation: str) -> Tuple[str, str]:
        try:
            return decode_threat_intel_set_id(data.id)
        except InvalidIdentifierError as e:
            raise InvalidIdentifierError(f"{operation}: {e}", resource_id=data.id) from e

    def _status_refresher(self, client: Any, detector_id: str, threat_intel_set_id: str):
        def refresh() -> Tuple[Dict[str, Any], str]:
            response = client.get_threat_intel_set(
                DetectorId=detector_id, ThreatIntelSetId=threat_intel_set_id
            )
            return response, response["Status"]

        return refresh

    def _wait(self, client: Any, detector_id: str, threat_intel_set_id: str, pending, target, ctx):
        return wait_for_state(
            pending,
            target,
            self._status_refresher(client, detector_id, threat_intel_set_id),
            timeout=self.meta.timeouts.threat_intel_set,
            min_timeout=self.meta.timeouts.threat_intel_set_poll,
            ctx=ctx,
        )

    def create(self, data: ResourceData, ctx: Optional[OperationContext] = None) -> None:
        ctx = self._ctx(ctx)
        ctx.check()
        client = self._client()

        detector_id = data.get("detector_id")
        name = data.get("name")
        request: Dict[str, Any] = {
            "DetectorId": detector_id,
            "Name": name,
            "Format": data.get("format"),
            "Location": data.get("location"),
            "Activate": data.get("activate"),
        }
        tags = tags_for_create(data.get("tags"), self.meta.default_tags)
        if tags:
            request["Tags"] = tags.to_map()

        operation = f"creating GuardDuty Threat Intel Set ({name})"
        try:
            response = client.create_threat_intel_set(**request)
        except ClientError as e:
            raise ResourceOperationError(operation, e) from e

        threat_intel_set_id = response["ThreatIntelSetId"]
        logger.debug(f"Waiting for GuardDuty Threat Intel Set {threat_intel_set_id} to settle")
        try:
            self._wait(client, detector_id, threat_intel_set_id, CREATE_PENDING, CREATE_TARGET, ctx)
        except WAIT_ERRORS as e:
            raise ResourceOperationError(f"{operation}: waiting for completion", e) from e

        data.set_id(encode_threat_intel_set_id(detector_id, threat_intel_set_id))
        logger.info(f"Created GuardDuty Threat Intel Set {data.id}")

        self.read(data, ctx)

    def read(self, data: ResourceData, ctx: Optional[OperationContext] = None) -> None:
        self._ctx(ctx).check()
        operation = f"reading GuardDuty Threat Intel Set ({data.id})"
        threat_intel_set_id, detector_id = self._decode_id(data, operation)

        try:
            response = self._client().get_threat_intel_set(
                DetectorId=detector_id, ThreatIntelSetId=threat_intel_set_id
            )
        except ClientError as e:
            if not data.is_new_resource() and aws_error_message_contains(
                e, "BadRequestException", DETECTOR_NOT_OWNED_MESSAGE
            ):
                logger.warning(
                    f"GuardDuty ThreatIntelSet {threat_intel_set_id!r} not found, removing from state"
                )
                data.set_id("")
                return
            raise ResourceOperationError(operation, e, resource_id=data.id) from e

        if response.get("Status") == STATUS_DELETED and not data.is_new_resource():
            logger.warning(
                f"GuardDuty ThreatIntelSet {threat_intel_set_id!r} is deleted, removing from state"
            )
            data.set_id("")
            return

        data.set(
            "arn",
            threat_intel_set_arn(
                self.meta.partition,
                self.meta.region,
                self.meta.account_id,
                detector_id,
                threat_intel_set_id,
            ),
        )
        data.set("detector_id", detector_id)
        data.set("format", response.get("Format"))
        data.set("location", response.get("Location"))
        data.set("name", response.get("Name"))
        data.set("activate", response.get("Status") == STATUS_ACTIVE)

        flatten_remote_tags(
            data,
            KeyValueTags.from_map(response.get("Tags")),
            self.meta.default_tags,
            self.meta.ignore_tags,
        )

    def update(self, data: ResourceData, ctx: Optional[OperationContext] = None) -> None:
        ctx = self._ctx(ctx)
        ctx.check()
        operation = f"updating GuardDuty Threat Intel Set ({data.id})"
        threat_intel_set_id, detector_id = self._decode_id(data, operation)
        client = self._client()

        if data.has_changes("activate", "location", "name"):
            request: Dict[str, Any] = {
                "DetectorId": detector_id,
                "ThreatIntelSetId": threat_intel_set_id,
            }
            if data.has_change("name"):
                request["Name"] = data.get("name")
            if data.has_change("location"):
                request["Location"] = data.get("location")
            if data.has_change("activate"):
                request["Activate"] = data.get("activate")

            logger.debug(f"Updating GuardDuty Threat Intel Set {data.id}: {sorted(request)}")
            try:
                client.update_threat_intel_set(**request)
            except ClientError as e:
                raise ResourceOperationError(operation, e, resource_id=data.id) from e

        if data.has_change("tags_all"):
            old, new = data.get_change("tags_all")
            try:
                update_guardduty_tags(client, data.get("arn"), old, new)
            except ClientError as e:
                raise ResourceOperationError(f"{operation}: setting tags", e, resource_id=data.id) from e

        self.read(data, ctx)

    def delete(self, data: ResourceData, ctx: Optional[OperationContext] = None) -> None:
        ctx = self._ctx(ctx)
        ctx.check()
        operation = f"deleting GuardDuty Threat Intel Set ({data.id})"
        threat_intel_set_id, detector_id = self._decode_id(data, operation)
        client = self._client()

        logger.debug(f"Deleting GuardDuty Threat Intel Set: {data.id}")
        try:
            client.delete_threat_intel_set(
                DetectorId=detector_id, ThreatIntelSetId=threat_intel_set_id
            )
        except ClientError as e:
            raise ResourceOperationError(operation, e, resource_id=data.id) from e

        try:
            self._wait(client, detector_id, threat_intel_set_id, DELETE_PENDING, DELETE_TARGET, ctx)
        except WAIT_ERRORS as e:
            raise ResourceOperationError(
                f'waiting for GuardDuty ThreatIntelSet status to be "{STATUS_DELETED}"',
                e,
                resource_id=data.id,
            ) from e
