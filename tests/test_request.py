"""Tests for flag validation and request normalization."""

import pytest

from gql_clientgen.core.errors import ConfigurationError
from gql_clientgen.core.request import (
    GENERATED_DIRECTORY,
    CodegenFlags,
    OptionSet,
    Target,
    validate_request,
)

OUTPUT_REQUIRED = "The output path must be specified in the arguments for Swift, Scala and JSON"


class TestTargetValidation:
    """Tests for target name checks."""

    @pytest.mark.parametrize("target", [t.value for t in Target])
    def test_supported_targets(self, target):
        request = validate_request(CodegenFlags(target=target, output="out"))
        assert request.target == Target(target)

    def test_unsupported_target(self):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_request(CodegenFlags(target="bogus", output="out"))
        assert str(exc_info.value) == "Unsupported target: bogus"

    def test_target_is_case_sensitive(self):
        with pytest.raises(ConfigurationError, match="Unsupported target: JSON"):
            validate_request(CodegenFlags(target="JSON", output="out"))


class TestOutputValidation:
    """Tests for output path rules."""

    @pytest.mark.parametrize("target", ["json", "swift", "scala"])
    def test_output_required(self, target):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_request(CodegenFlags(target=target))
        assert str(exc_info.value) == OUTPUT_REQUIRED

    def test_empty_output_counts_as_missing(self):
        with pytest.raises(ConfigurationError, match="must be specified"):
            validate_request(CodegenFlags(target="json", output=""))

    @pytest.mark.parametrize("target", ["typescript", "flow"])
    def test_relative_targets_allow_missing_output(self, target):
        request = validate_request(CodegenFlags(target=target))
        assert request.output_path is None
        assert request.resolved_output == GENERATED_DIRECTORY
        assert request.relativize_output is True

    def test_single_directory_name(self):
        request = validate_request(CodegenFlags(target="typescript", output="types"))
        assert request.resolved_output == "types"

    @pytest.mark.parametrize("output", ["a/b", "./a", "/abs"])
    def test_nested_output_rejected_without_flat(self, output):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_request(CodegenFlags(target="flow", output=output))
        assert "must be empty or a single directory name" in str(exc_info.value)

    def test_nested_output_allowed_with_flat(self):
        request = validate_request(
            CodegenFlags(target="typescript", output="src/types/all.ts", output_flat=True)
        )
        assert request.output_path == "src/types/all.ts"
        assert request.relativize_output is False

    def test_json_accepts_nested_output(self):
        request = validate_request(CodegenFlags(target="json", output="build/ops.json"))
        assert request.resolved_output == "build/ops.json"
        assert request.relativize_output is True


class TestOptionSet:
    """Tests for derived generation options."""

    def test_prefix_implies_passthrough(self):
        options = OptionSet.from_flags(CodegenFlags(target="typescript", custom_scalars_prefix="S"))
        assert options.passthrough_custom_scalars is True
        assert options.custom_scalars_prefix == "S"

    def test_passthrough_without_prefix(self):
        options = OptionSet.from_flags(
            CodegenFlags(target="typescript", passthrough_custom_scalars=True)
        )
        assert options.passthrough_custom_scalars is True
        assert options.custom_scalars_prefix == ""

    def test_flow_read_only_implies_read_only(self):
        options = OptionSet.from_flags(CodegenFlags(target="flow", use_flow_read_only_types=True))
        assert options.use_read_only_types is True

    def test_operation_ids_enabled_by_path(self):
        assert OptionSet.from_flags(CodegenFlags(target="json")).generate_operation_ids is False
        options = OptionSet.from_flags(CodegenFlags(target="json", operation_ids_path="ids.json"))
        assert options.generate_operation_ids is True
        assert options.operation_ids_path == "ids.json"

    def test_request_carries_only_tag_and_tag_name(self):
        request = validate_request(CodegenFlags(
            target="json", output="out.json", only="src/a.graphql", tag="prod", tag_name="graphql",
        ))
        assert request.only_file == "src/a.graphql"
        assert request.tag == "prod"
        assert request.tag_name == "graphql"
        assert request.options.add_typename is True
