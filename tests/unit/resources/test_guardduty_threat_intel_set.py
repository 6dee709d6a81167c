"""Tests for the GuardDuty threat intel set handler."""

import pytest

from src.awsprov.errors import InvalidIdentifierError, ResourceOperationError
from src.awsprov.resources.guardduty_threat_intel_set import (
    DETECTOR_NOT_OWNED_MESSAGE,
    THREAT_INTEL_SET_SCHEMA,
    ThreatIntelSetHandler,
    decode_threat_intel_set_id,
    threat_intel_set_arn,
)
from src.awsprov.state import ResourceData
from src.awsprov.tags import set_tags_diff
from tests.fixtures.aws_clients import (
    client_error,
    mock_aws_client_manager,
    mock_emr_client,
    mock_guardduty_client,
    mock_ssm_client,
    provider_meta,
)
from tests.fixtures.resources import sample_threat_intel_set, sample_threat_intel_set_config

ARN = "arn:aws:guardduty:us-east-1:123456789012:detector/det-1/threatintelset/tis-1"


def current_state(handler, client, remote):
    """Read the remote set into a fresh state."""
    client.get_threat_intel_set.return_value = remote
    data = ResourceData(THREAT_INTEL_SET_SCHEMA, state={"id": "det-1:tis-1"})
    handler.read(data)
    client.get_threat_intel_set.reset_mock()
    return data.state()


class TestDecodeThreatIntelSetId:
    """Test composite identifier decoding."""

    def test_decode_valid_id(self):
        assert decode_threat_intel_set_id("det-1:tis-1") == ("tis-1", "det-1")

    @pytest.mark.parametrize("resource_id", ["tis-1", "det-1:tis-1:extra", ""])
    def test_decode_malformed_id(self, resource_id):
        with pytest.raises(InvalidIdentifierError) as exc_info:
            decode_threat_intel_set_id(resource_id)

        assert str(exc_info.value) == (
            "GuardDuty ThreatIntelSet ID must be of the form <Detector ID>:<ThreatIntelSet ID>, "
            f"was provided: {resource_id}"
        )

    def test_arn_format(self):
        assert threat_intel_set_arn("aws", "us-east-1", "123456789012", "det-1", "tis-1") == ARN


class TestThreatIntelSetCreate:
    """Test threat intel set creation."""

    def test_create_polls_until_active_then_reads(
        self,
        provider_meta,
        mock_guardduty_client,
        sample_threat_intel_set,
        sample_threat_intel_set_config,
    ):
        """Test pending, pending, terminal status sequence during create."""
        mock_guardduty_client.get_threat_intel_set.side_effect = [
            {"Status": "ACTIVATING"},
            {"Status": "ACTIVATING"},
            sample_threat_intel_set,
            sample_threat_intel_set,
        ]
        handler = ThreatIntelSetHandler(provider_meta)
        data = ResourceData(THREAT_INTEL_SET_SCHEMA, config=sample_threat_intel_set_config)
        data.mark_new_resource()

        handler.create(data)

        mock_guardduty_client.create_threat_intel_set.assert_called_once_with(
            DetectorId="det-1",
            Name="blocklist",
            Format="TXT",
            Location="https://s3.amazonaws.com/bucket/blocklist.txt",
            Activate=True,
            Tags={"Team": "security"},
        )
        assert mock_guardduty_client.get_threat_intel_set.call_count == 4
        mock_guardduty_client.get_threat_intel_set.assert_called_with(
            DetectorId="det-1", ThreatIntelSetId="tis-1"
        )

        state = data.state()
        assert state["id"] == "det-1:tis-1"
        assert state["arn"] == ARN
        assert state["detector_id"] == "det-1"
        assert state["name"] == "blocklist"
        assert state["format"] == "TXT"
        assert state["location"] == "https://s3.amazonaws.com/bucket/blocklist.txt"
        assert state["activate"] is True
        assert state["tags"] == {"Team": "security"}

    def test_create_inactive_set(
        self, provider_meta, mock_guardduty_client, sample_threat_intel_set, sample_threat_intel_set_config
    ):
        """Test that an INACTIVE status ends the wait and reads as activate=False."""
        sample_threat_intel_set["Status"] = "INACTIVE"
        mock_guardduty_client.get_threat_intel_set.return_value = sample_threat_intel_set
        sample_threat_intel_set_config["activate"] = False
        handler = ThreatIntelSetHandler(provider_meta)
        data = ResourceData(THREAT_INTEL_SET_SCHEMA, config=sample_threat_intel_set_config)

        handler.create(data)

        assert data.get("activate") is False

    def test_create_error(self, provider_meta, mock_guardduty_client, sample_threat_intel_set_config):
        """Test that create errors name the set."""
        mock_guardduty_client.create_threat_intel_set.side_effect = client_error(
            "BadRequestException", "invalid location"
        )
        handler = ThreatIntelSetHandler(provider_meta)
        data = ResourceData(THREAT_INTEL_SET_SCHEMA, config=sample_threat_intel_set_config)

        with pytest.raises(ResourceOperationError) as exc_info:
            handler.create(data)

        assert str(exc_info.value).startswith("creating GuardDuty Threat Intel Set (blocklist): ")
        mock_guardduty_client.get_threat_intel_set.assert_not_called()

    def test_create_wait_timeout(
        self, provider_meta, mock_guardduty_client, sample_threat_intel_set_config
    ):
        """Test that a set stuck in a pending status times out."""
        provider_meta.timeouts.threat_intel_set = 0.0
        mock_guardduty_client.get_threat_intel_set.return_value = {"Status": "ACTIVATING"}
        handler = ThreatIntelSetHandler(provider_meta)
        data = ResourceData(THREAT_INTEL_SET_SCHEMA, config=sample_threat_intel_set_config)

        with pytest.raises(ResourceOperationError) as exc_info:
            handler.create(data)

        message = str(exc_info.value)
        assert message.startswith(
            "creating GuardDuty Threat Intel Set (blocklist): waiting for completion: "
        )
        assert "timeout while waiting for state to become 'ACTIVE, INACTIVE'" in message
        assert data.id == ""

    def test_create_unexpected_status(
        self, provider_meta, mock_guardduty_client, sample_threat_intel_set_config
    ):
        """Test that a status outside the pending and target sets fails the wait."""
        mock_guardduty_client.get_threat_intel_set.return_value = {"Status": "ERROR"}
        handler = ThreatIntelSetHandler(provider_meta)
        data = ResourceData(THREAT_INTEL_SET_SCHEMA, config=sample_threat_intel_set_config)

        with pytest.raises(ResourceOperationError, match="unexpected state 'ERROR'"):
            handler.create(data)


class TestThreatIntelSetRead:
    """Test threat intel set reads."""

    @pytest.mark.parametrize("operation", ["read", "update", "delete"])
    def test_malformed_id_rejected_before_remote_call(
        self, provider_meta, mock_guardduty_client, operation
    ):
        """Test that a malformed identifier never reaches GuardDuty."""
        handler = ThreatIntelSetHandler(provider_meta)
        data = ResourceData(THREAT_INTEL_SET_SCHEMA, state={"id": "not-a-composite-id"})

        with pytest.raises(InvalidIdentifierError, match="was provided: not-a-composite-id"):
            getattr(handler, operation)(data)

        assert mock_guardduty_client.method_calls == []

    def test_read_detector_not_owned_clears_id(self, provider_meta, mock_guardduty_client):
        """Test that a detector owned by another account means the set is gone."""
        mock_guardduty_client.get_threat_intel_set.side_effect = client_error(
            "BadRequestException", DETECTOR_NOT_OWNED_MESSAGE
        )
        handler = ThreatIntelSetHandler(provider_meta)
        data = ResourceData(THREAT_INTEL_SET_SCHEMA, state={"id": "det-1:tis-1"})

        handler.read(data)

        assert data.state() is None

    def test_read_other_bad_request_is_an_error(self, provider_meta, mock_guardduty_client):
        mock_guardduty_client.get_threat_intel_set.side_effect = client_error(
            "BadRequestException", "something else"
        )
        handler = ThreatIntelSetHandler(provider_meta)
        data = ResourceData(THREAT_INTEL_SET_SCHEMA, state={"id": "det-1:tis-1"})

        with pytest.raises(ResourceOperationError) as exc_info:
            handler.read(data)

        assert str(exc_info.value).startswith("reading GuardDuty Threat Intel Set (det-1:tis-1): ")

    def test_read_deleted_status_clears_id(self, provider_meta, mock_guardduty_client):
        mock_guardduty_client.get_threat_intel_set.return_value = {"Status": "DELETED"}
        handler = ThreatIntelSetHandler(provider_meta)
        data = ResourceData(THREAT_INTEL_SET_SCHEMA, state={"id": "det-1:tis-1"})

        handler.read(data)

        assert data.id == ""

    def test_read_uses_provider_partition(
        self, provider_meta, mock_guardduty_client, sample_threat_intel_set
    ):
        provider_meta.partition = "aws-cn"
        provider_meta.region = "cn-north-1"
        mock_guardduty_client.get_threat_intel_set.return_value = sample_threat_intel_set
        handler = ThreatIntelSetHandler(provider_meta)
        data = ResourceData(THREAT_INTEL_SET_SCHEMA, state={"id": "det-1:tis-1"})

        handler.read(data)

        assert data.get("arn").startswith("arn:aws-cn:guardduty:cn-north-1:123456789012:")


class TestThreatIntelSetUpdate:
    """Test threat intel set updates."""

    def test_update_sends_only_changed_fields(
        self,
        provider_meta,
        mock_guardduty_client,
        sample_threat_intel_set,
        sample_threat_intel_set_config,
    ):
        """Test that only the changed attributes are sent."""
        handler = ThreatIntelSetHandler(provider_meta)
        state = current_state(handler, mock_guardduty_client, sample_threat_intel_set)

        sample_threat_intel_set_config["name"] = "blocklist-v2"
        sample_threat_intel_set_config["activate"] = False
        data = ResourceData(THREAT_INTEL_SET_SCHEMA, state=state, config=sample_threat_intel_set_config)
        set_tags_diff(data, provider_meta.default_tags)

        handler.update(data)

        mock_guardduty_client.update_threat_intel_set.assert_called_once_with(
            DetectorId="det-1",
            ThreatIntelSetId="tis-1",
            Name="blocklist-v2",
            Activate=False,
        )
        mock_guardduty_client.tag_resource.assert_not_called()
        mock_guardduty_client.untag_resource.assert_not_called()
        mock_guardduty_client.get_threat_intel_set.assert_called_once()

    def test_update_tags_only(
        self,
        provider_meta,
        mock_guardduty_client,
        sample_threat_intel_set,
        sample_threat_intel_set_config,
    ):
        """Test that a tag change uses the tagging API on the set's ARN."""
        handler = ThreatIntelSetHandler(provider_meta)
        sample_threat_intel_set["Tags"] = {"Team": "security", "Old": "yes"}
        state = current_state(handler, mock_guardduty_client, sample_threat_intel_set)

        sample_threat_intel_set_config["tags"] = {"Team": "secops"}
        data = ResourceData(THREAT_INTEL_SET_SCHEMA, state=state, config=sample_threat_intel_set_config)
        set_tags_diff(data, provider_meta.default_tags)

        handler.update(data)

        mock_guardduty_client.update_threat_intel_set.assert_not_called()
        mock_guardduty_client.untag_resource.assert_called_once_with(ResourceArn=ARN, TagKeys=["Old"])
        mock_guardduty_client.tag_resource.assert_called_once_with(
            ResourceArn=ARN, Tags={"Team": "secops"}
        )

    def test_update_tag_error(
        self,
        provider_meta,
        mock_guardduty_client,
        sample_threat_intel_set,
        sample_threat_intel_set_config,
    ):
        handler = ThreatIntelSetHandler(provider_meta)
        state = current_state(handler, mock_guardduty_client, sample_threat_intel_set)
        mock_guardduty_client.tag_resource.side_effect = client_error("AccessDeniedException", "no")

        sample_threat_intel_set_config["tags"] = {"Team": "secops"}
        data = ResourceData(THREAT_INTEL_SET_SCHEMA, state=state, config=sample_threat_intel_set_config)
        set_tags_diff(data, provider_meta.default_tags)

        with pytest.raises(ResourceOperationError) as exc_info:
            handler.update(data)

        assert str(exc_info.value).startswith(
            "updating GuardDuty Threat Intel Set (det-1:tis-1): setting tags: "
        )


class TestThreatIntelSetDelete:
    """Test threat intel set deletion."""

    def test_delete_waits_for_deleted_then_reads_absent(
        self, provider_meta, mock_guardduty_client
    ):
        """Test that delete polls until DELETED and a later read reports absence."""
        mock_guardduty_client.get_threat_intel_set.side_effect = [
            {"Status": "DELETE_PENDING"},
            {"Status": "DELETED"},
            {"Status": "DELETED"},
        ]
        handler = ThreatIntelSetHandler(provider_meta)
        data = ResourceData(THREAT_INTEL_SET_SCHEMA, state={"id": "det-1:tis-1"})

        handler.delete(data)

        mock_guardduty_client.delete_threat_intel_set.assert_called_once_with(
            DetectorId="det-1", ThreatIntelSetId="tis-1"
        )
        assert mock_guardduty_client.get_threat_intel_set.call_count == 2

        handler.read(data)
        assert data.state() is None

    def test_delete_error(self, provider_meta, mock_guardduty_client):
        mock_guardduty_client.delete_threat_intel_set.side_effect = client_error(
            "InternalServerErrorException", "boom"
        )
        handler = ThreatIntelSetHandler(provider_meta)
        data = ResourceData(THREAT_INTEL_SET_SCHEMA, state={"id": "det-1:tis-1"})

        with pytest.raises(ResourceOperationError) as exc_info:
            handler.delete(data)

        assert str(exc_info.value).startswith("deleting GuardDuty Threat Intel Set (det-1:tis-1): ")

    def test_delete_wait_error(self, provider_meta, mock_guardduty_client):
        mock_guardduty_client.get_threat_intel_set.side_effect = client_error(
            "BadRequestException", "boom"
        )
        handler = ThreatIntelSetHandler(provider_meta)
        data = ResourceData(THREAT_INTEL_SET_SCHEMA, state={"id": "det-1:tis-1"})

        with pytest.raises(ResourceOperationError) as exc_info:
            handler.delete(data)

        assert str(exc_info.value).startswith(
            'waiting for GuardDuty ThreatIntelSet status to be "DELETED": '
        )


class TestThreatIntelSetSchema:
    """Test the threat intel set schema."""

    def test_invalid_format(self, sample_threat_intel_set_config):
        sample_threat_intel_set_config["format"] = "CSV"
        errors = THREAT_INTEL_SET_SCHEMA.validate(sample_threat_intel_set_config)
        assert len(errors) == 1
        assert errors[0].startswith("format: expected to be one of")

    def test_arn_cannot_be_configured(self, sample_threat_intel_set_config):
        sample_threat_intel_set_config["arn"] = "arn:aws:guardduty:::x"
        errors = THREAT_INTEL_SET_SCHEMA.validate(sample_threat_intel_set_config)
        assert errors == ["arn: computed attribute cannot be set"]
