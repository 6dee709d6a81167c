"""Handler for EMR Studio (``aws_emr_studio``)."""

import logging
from typing import Any, Dict, Optional

from botocore.exceptions import ClientError

from ..context import OperationContext
from ..errors import ResourceNotFoundError, ResourceOperationError
from ..schema import (
    Field,
    FieldType,
    Schema,
    string_in_slice,
    string_len_between,
    tags_all_schema,
    tags_schema,
    valid_arn,
)
from ..state import ResourceData
from ..tags import KeyValueTags, flatten_remote_tags, tags_for_create, update_emr_tags
from ..utils.retry import (
    RetryConfig,
    aws_error_code_equals,
    aws_error_message_contains,
    matches_any,
    retry_on_error,
)
from .base import ResourceHandler, register_resource

logger = logging.getLogger(__name__)

AUTH_MODES = ["SSO", "IAM"]

# The service role and its policies may not have propagated through IAM yet
RETRYABLE_CREATE_ERRORS = [
    ("InvalidRequestException", "entity does not have permissions to assume role"),
    ("InvalidRequestException", "Service role does not have permission to access"),
]

STUDIO_SCHEMA = Schema(
    {
        "arn": Field(FieldType.STRING, computed=True),
        "auth_mode": Field(
            FieldType.STRING, required=True, force_new=True, validators=[string_in_slice(AUTH_MODES)]
        ),
        "default_s3_location": Field(FieldType.STRING, required=True),
        "description": Field(
            FieldType.STRING, optional=True, validators=[string_len_between(0, 256)]
        ),
        "engine_security_group_id": Field(FieldType.STRING, required=True, force_new=True),
        "idp_auth_url": Field(FieldType.STRING, optional=True, force_new=True),
        "idp_relay_state_parameter_name": Field(FieldType.STRING, optional=True, force_new=True),
        "name": Field(FieldType.STRING, required=True, validators=[string_len_between(1, 256)]),
        "service_role": Field(
            FieldType.STRING, required=True, force_new=True, validators=[valid_arn]
        ),
        "subnet_ids": Field(FieldType.SET, required=True, min_items=1, max_items=5),
        "tags": tags_schema(),
        "tags_all": tags_all_schema(),
        "url": Field(FieldType.STRING, computed=True),
        "user_role": Field(FieldType.STRING, optional=True, force_new=True, validators=[valid_arn]),
        "vpc_id": Field(FieldType.STRING, required=True, force_new=True),
        "workspace_security_group_id": Field(FieldType.STRING, required=True, force_new=True),
    }
)

# Fields copied verbatim from DescribeStudio output
STUDIO_ATTRIBUTES = {
    "arn": "StudioArn",
    "auth_mode": "AuthMode",
    "default_s3_location": "DefaultS3Location",
    "description": "Description",
    "engine_security_group_id": "EngineSecurityGroupId",
    "idp_auth_url": "IdpAuthUrl",
    "idp_relay_state_parameter_name": "IdpRelayStateParameterName",
    "name": "Name",
    "service_role": "ServiceRole",
    "url": "Url",
    "user_role": "UserRole",
    "vpc_id": "VpcId",
    "workspace_security_group_id": "WorkspaceSecurityGroupId",
}


def find_studio_by_id(client: Any, studio_id: str) -> Dict[str, Any]:
    """
    Describe an EMR Studio.

    Args:
        client: EMR client
        studio_id: Studio identifier

    Returns:
        The ``Studio`` structure of the DescribeStudio response

    Raises:
        ResourceNotFoundError: If the studio does not exist
        ClientError: For any other API failure
    """
    try:
        response = client.describe_studio(StudioId=studio_id)
    except ClientError as e:
        if aws_error_message_contains(e, "InvalidRequestException", "does not exist"):
            raise ResourceNotFoundError(str(e), resource_id=studio_id, last_request=studio_id) from e
        raise

    studio = response.get("Studio")
    if not studio:
        raise ResourceNotFoundError("empty result", resource_id=studio_id, last_request=studio_id)
    return studio


@register_resource("aws_emr_studio")
class EMRStudioHandler(ResourceHandler):
    """Manages an EMR Studio environment."""

    schema = STUDIO_SCHEMA

    def _client(self) -> Any:
        return self.meta.client_manager.get_emr_client()

    def build_create_request(self, data: ResourceData) -> Dict[str, Any]:
        request: Dict[str, Any] = {
            "AuthMode": data.get("auth_mode"),
            "DefaultS3Location": data.get("default_s3_location"),
            "EngineSecurityGroupId": data.get("engine_security_group_id"),
            "Name": data.get("name"),
            "ServiceRole": data.get("service_role"),
            "SubnetIds": list(data.get("subnet_ids")),
            "VpcId": data.get("vpc_id"),
            "WorkspaceSecurityGroupId": data.get("workspace_security_group_id"),
        }

        optional = {
            "Description": "description",
            "IdpAuthUrl": "idp_auth_url",
            "IdpRelayStateParameterName": "idp_relay_state_parameter_name",
            "UserRole": "user_role",
        }
        for param, key in optional.items():
            value, ok = data.get_ok(key)
            if ok:
                request[param] = value

        tags = tags_for_create(data.get("tags"), self.meta.default_tags)
        if tags:
            request["Tags"] = tags.to_aws_list()

        return request

    def create(self, data: ResourceData, ctx: Optional[OperationContext] = None) -> None:
        ctx = self._ctx(ctx)
        client = self._client()
        request = self.build_create_request(data)

        logger.debug(f"Creating EMR Studio {request['Name']}")
        try:
            response = retry_on_error(
                lambda: client.create_studio(**request),
                matches_any(RETRYABLE_CREATE_ERRORS),
                config=RetryConfig(timeout=self.meta.timeouts.propagation),
                ctx=ctx,
                description="CreateStudio",
            )
        except ClientError as e:
            raise ResourceOperationError("creating EMR Studio", e) from e

        data.set_id(response.get("StudioId"))
        logger.info(f"Created EMR Studio {data.id}")

        self.read(data, ctx)

    def read(self, data: ResourceData, ctx: Optional[OperationContext] = None) -> None:
        self._ctx(ctx).check()

        try:
            studio = find_studio_by_id(self._client(), data.id)
        except ResourceNotFoundError as e:
            if not data.is_new_resource():
                logger.warning(f"EMR Studio ({data.id}) not found, removing from state")
                data.set_id("")
                return
            raise ResourceOperationError(f"reading EMR Studio ({data.id})", e, resource_id=data.id) from e
        except ClientError as e:
            raise ResourceOperationError(f"reading EMR Studio ({data.id})", e, resource_id=data.id) from e

        for key, attribute in STUDIO_ATTRIBUTES.items():
            data.set(key, studio.get(attribute))
        data.set("subnet_ids", studio.get("SubnetIds") or [])

        flatten_remote_tags(
            data,
            KeyValueTags.from_aws_list(studio.get("Tags")),
            self.meta.default_tags,
            self.meta.ignore_tags,
        )

    def update(self, data: ResourceData, ctx: Optional[OperationContext] = None) -> None:
        ctx = self._ctx(ctx)
        ctx.check()
        client = self._client()

        if data.has_changes_except("tags", "tags_all"):
            request: Dict[str, Any] = {"StudioId": data.id}
            if data.has_change("description"):
                request["Description"] = data.get("description")
            if data.has_change("name"):
                request["Name"] = data.get("name")
            if data.has_change("default_s3_location"):
                request["DefaultS3Location"] = data.get("default_s3_location")
            if data.has_change("subnet_ids"):
                request["SubnetIds"] = list(data.get("subnet_ids"))

            if len(request) > 1:
                logger.debug(f"Updating EMR Studio {data.id}: {sorted(request)}")
                try:
                    client.update_studio(**request)
                except ClientError as e:
                    raise ResourceOperationError(
                        f"updating EMR Studio ({data.id})", e, resource_id=data.id
                    ) from e

        if data.has_change("tags_all"):
            old, new = data.get_change("tags_all")
            try:
                update_emr_tags(client, data.id, old, new)
            except ClientError as e:
                raise ResourceOperationError(
                    f"updating EMR Studio ({data.id}) tags", e, resource_id=data.id
                ) from e

        self.read(data, ctx)

    def delete(self, data: ResourceData, ctx: Optional[OperationContext] = None) -> None:
        self._ctx(ctx).check()
        logger.info(f"Deleting EMR Studio: {data.id}")

        try:
            self._client().delete_studio(StudioId=data.id)
        except ClientError as e:
            if aws_error_code_equals(e, "InternalServerException"):
                logger.debug(f"EMR Studio {data.id} already removed")
                return
            raise ResourceOperationError(f"deleting EMR Studio ({data.id})", e, resource_id=data.id) from e
