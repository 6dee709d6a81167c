"""Handler for SSM hybrid activations (``aws_ssm_activation``)."""

import logging
from typing import Any, Dict, Optional

from botocore.exceptions import ClientError

from ..context import OperationContext
from ..errors import ResourceNotFoundError, ResourceOperationError
from ..schema import (
    Field,
    FieldType,
    Schema,
    format_rfc3339,
    parse_rfc3339,
    tags_all_schema,
    tags_schema,
    validate_rfc3339,
)
from ..state import ResourceData
from ..tags import KeyValueTags, flatten_remote_tags, tags_for_create
from ..utils.retry import RetryConfig, matches_any, retry_on_error
from .base import ResourceHandler, register_resource

logger = logging.getLogger(__name__)

# IAM roles take a while to become usable by SSM after creation
RETRYABLE_CREATE_ERRORS = [("ValidationException", "Not existing role")]

ACTIVATION_SCHEMA = Schema(
    {
        "name": Field(FieldType.STRING, optional=True, force_new=True),
        "description": Field(FieldType.STRING, optional=True, force_new=True),
        "expired": Field(FieldType.BOOL, computed=True),
        "expiration_date": Field(
            FieldType.STRING,
            optional=True,
            computed=True,
            force_new=True,
            validators=[validate_rfc3339],
        ),
        "iam_role": Field(FieldType.STRING, required=True, force_new=True),
        "registration_limit": Field(FieldType.INT, optional=True, force_new=True),
        "registration_count": Field(FieldType.INT, computed=True),
        "activation_code": Field(FieldType.STRING, computed=True, sensitive=True),
        "tags": tags_schema(force_new=True),
        "tags_all": tags_all_schema(),
    }
)


@register_resource("aws_ssm_activation")
class SSMActivationHandler(ResourceHandler):
    """
    Registers on-premises machines with Systems Manager.

    Activations are immutable: every configurable attribute forces a new
    activation, so there is no update operation.
    """

    schema = ACTIVATION_SCHEMA

    def _client(self) -> Any:
        return self.meta.client_manager.get_ssm_client()

    def build_create_request(self, data: ResourceData) -> Dict[str, Any]:
        request: Dict[str, Any] = {"IamRole": data.get("iam_role")}

        name, ok = data.get_ok("name")
        if ok:
            request["DefaultInstanceName"] = name

        description, ok = data.get_ok("description")
        if ok:
            request["Description"] = description

        expiration_date, ok = data.get_ok("expiration_date")
        if ok:
            request["ExpirationDate"] = parse_rfc3339(expiration_date)

        limit, ok = data.get_ok("registration_limit")
        if ok:
            request["RegistrationLimit"] = limit

        tags = tags_for_create(data.get("tags"), self.meta.default_tags)
        if tags:
            request["Tags"] = tags.to_aws_list()

        return request

    def create(self, data: ResourceData, ctx: Optional[OperationContext] = None) -> None:
        ctx = self._ctx(ctx)
        client = self._client()
        request = self.build_create_request(data)

        logger.debug(f"Creating SSM activation for role {request['IamRole']}")
        try:
            response = retry_on_error(
                lambda: client.create_activation(**request),
                matches_any(RETRYABLE_CREATE_ERRORS),
                config=RetryConfig(timeout=self.meta.timeouts.propagation),
                ctx=ctx,
                description="CreateActivation",
            )
        except ClientError as e:
            raise ResourceOperationError("creating SSM activation", e) from e

        activation_id = response.get("ActivationId")
        if not activation_id:
            raise ResourceOperationError("ActivationId was nil")

        data.set_id(activation_id)
        data.set("activation_code", response.get("ActivationCode"))
        logger.info(f"Created SSM activation {activation_id}")

        self.read(data, ctx)

    def read(self, data: ResourceData, ctx: Optional[OperationContext] = None) -> None:
        self._ctx(ctx).check()
        logger.debug(f"Reading SSM Activation: {data.id}")

        try:
            response = self._client().describe_activations(
                Filters=[{"FilterKey": "ActivationIds", "FilterValues": [data.id]}],
                MaxResults=1,
            )
        except ClientError as e:
            raise ResourceOperationError("reading SSM activation", e, resource_id=data.id) from e

        activations = response.get("ActivationList") or []
        if not activations:
            if data.is_new_resource():
                raise ResourceOperationError(
                    "reading SSM activation",
                    ResourceNotFoundError(f"SSM Activation ({data.id}) not found", data.id),
                    resource_id=data.id,
                )
            logger.warning(f"SSM Activation ({data.id}) not found, removing from state")
            data.set_id("")
            return

        activation = activations[0]
        data.set("name", activation.get("DefaultInstanceName"))
        data.set("description", activation.get("Description"))
        data.set("expiration_date", format_rfc3339(activation.get("ExpirationDate")))
        data.set("expired", activation.get("Expired", False))
        data.set("iam_role", activation.get("IamRole"))
        data.set("registration_limit", activation.get("RegistrationLimit", 0))
        data.set("registration_count", activation.get("RegistrationsCount", 0))

        flatten_remote_tags(
            data,
            KeyValueTags.from_aws_list(activation.get("Tags")),
            self.meta.default_tags,
            self.meta.ignore_tags,
        )

    def delete(self, data: ResourceData, ctx: Optional[OperationContext] = None) -> None:
        self._ctx(ctx).check()
        logger.debug(f"Deleting SSM Activation: {data.id}")

        try:
            self._client().delete_activation(ActivationId=data.id)
        except ClientError as e:
            raise ResourceOperationError("deleting SSM activation", e, resource_id=data.id) from e
