"""Tests for the command-line interface."""

import json

import pytest
from click.testing import CliRunner

from conftest import HERO_QUERY, SCHEMA_SDL, write
from gql_clientgen.cli import apply_overrides, main, parse_header
from gql_clientgen import __version__
from gql_clientgen.core.config import CONFIG_FILENAME, ClientConfig, load_config


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    write(tmp_path / "schema.graphql", SCHEMA_SDL)
    write(tmp_path / "src/hero.graphql", HERO_QUERY)
    return tmp_path


class TestFlagValidation:
    """Flag errors exit non-zero with a message."""

    def test_unsupported_target(self, runner, workdir):
        result = runner.invoke(main, ["generate", "--target", "bogus", "out.json"])
        assert result.exit_code != 0
        assert "Unsupported target: bogus" in result.output

    def test_missing_output(self, runner, workdir):
        result = runner.invoke(main, ["generate", "--target", "json"])
        assert result.exit_code != 0
        assert "The output path must be specified" in result.output

    def test_nested_relative_output(self, runner, workdir):
        result = runner.invoke(main, ["generate", "--target", "typescript", "a/b"])
        assert result.exit_code != 0
        assert "must be empty or a single directory name" in result.output

    def test_target_is_required(self, runner, workdir):
        result = runner.invoke(main, ["generate", "out.json"])
        assert result.exit_code == 2

    def test_flags_checked_before_config(self, runner, workdir):
        result = runner.invoke(
            main, ["generate", "--target", "bogus", "--config", "missing.yaml", "out.json"]
        )
        assert "Unsupported target: bogus" in result.output


class TestGenerate:
    """Tests for one-shot generation."""

    def test_json(self, runner, workdir):
        result = runner.invoke(main, [
            "generate", "--target", "json", "--localSchemaFile", "schema.graphql", "operations.json",
        ])
        assert result.exit_code == 0, result.output
        assert "Done! Wrote 1 files." in result.output
        manifest = json.loads((workdir / "operations.json").read_text())
        assert manifest["operations"][0]["operationName"] == "HeroName"

    def test_typescript(self, runner, workdir):
        result = runner.invoke(main, [
            "generate", "--target", "typescript", "--localSchemaFile", "schema.graphql",
            "--no-addTypename",
        ])
        assert result.exit_code == 0, result.output
        content = (workdir / "src/__generated__/HeroName.ts").read_text()
        assert "export interface HeroName_hero {\n  name: string;\n}" in content
        assert (workdir / "src/__generated__/globalTypes.ts").is_file()

    def test_flow_flat_with_operation_ids(self, runner, workdir):
        result = runner.invoke(main, [
            "generate", "--target", "flow", "--localSchemaFile", "schema.graphql",
            "--outputFlat", "--operationIdsPath", "ids.json", "types/all.js",
        ])
        assert result.exit_code == 0, result.output
        assert (workdir / "types/all.js").read_text().startswith("/* @flow */")
        ids = json.loads((workdir / "ids.json").read_text())
        assert [entry["name"] for entry in ids.values()] == ["HeroName"]

    def test_config_file(self, runner, workdir):
        write(workdir / "app/q.ts", "export const q = graphql`query FromTs { hero { name } }`;")
        write(workdir / CONFIG_FILENAME, (
            "client:\n"
            "  includes: ['app/**/*.ts']\n"
            "  tag_name: graphql\n"
            "  schema:\n"
            "    local_schema_files: [schema.graphql]\n"
        ))
        result = runner.invoke(main, ["generate", "--target", "json", "ops.json"])
        assert result.exit_code == 0, result.output
        manifest = json.loads((workdir / "ops.json").read_text())
        assert [op["operationName"] for op in manifest["operations"]] == ["FromTs"]

    def test_no_schema_source(self, runner, workdir):
        result = runner.invoke(main, ["generate", "--target", "json", "ops.json"])
        assert result.exit_code != 0
        assert "No schema source configured" in result.output

    def test_no_documents(self, runner, workdir):
        result = runner.invoke(main, [
            "generate", "--target", "json", "--localSchemaFile", "schema.graphql",
            "--includes", "nothing/**/*.graphql", "ops.json",
        ])
        assert result.exit_code != 0
        assert "No operations or fragments found to generate code for." in result.output

    def test_invalid_document(self, runner, workdir):
        write(workdir / "src/bad.graphql", "query Bad { hero { nope } }")
        result = runner.invoke(main, [
            "generate", "--target", "json", "--localSchemaFile", "schema.graphql", "ops.json",
        ])
        assert result.exit_code != 0
        assert "Validation of GraphQL query document failed" in result.output
        assert not (workdir / "ops.json").exists()

    def test_unsupported_emitter(self, runner, workdir):
        result = runner.invoke(main, [
            "generate", "--target", "swift", "--localSchemaFile", "schema.graphql", "API.swift",
        ])
        assert result.exit_code != 0
        assert "No emitter is installed for the 'swift' target" in result.output


class TestInit:
    def test_writes_config_once(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(main, ["init"])
        assert result.exit_code == 0
        assert (tmp_path / CONFIG_FILENAME).is_file()

        again = runner.invoke(main, ["init"])
        assert again.exit_code != 0
        assert "already exists" in again.output
        assert runner.invoke(main, ["init", "--force"]).exit_code == 0

    def test_written_config_loads(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        runner.invoke(main, ["init"])
        config = load_config()
        assert config.client.tag_name == "gql"
        assert config.client.schema_source.local_schema_files == ["schema.graphql"]

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestOverrides:
    """Tests for merging flags into the config."""

    def test_parse_header(self):
        assert parse_header("Authorization: Bearer a:b") == ("Authorization", "Bearer a:b")

    def test_bad_header_is_usage_error(self, runner, workdir):
        result = runner.invoke(main, [
            "generate", "--target", "json", "--endpoint", "https://x/graphql",
            "--header", "nocolon", "ops.json",
        ])
        assert result.exit_code == 2

    def test_local_files_replace_endpoint(self):
        client = ClientConfig(schema={"endpoint": "https://x/graphql"})
        merged = apply_overrides(client, "a.graphql, b.graphql", None, (), None, None, None)
        assert merged.schema_source.local_schema_files == ["a.graphql", "b.graphql"]
        assert merged.schema_source.endpoint is None

    def test_endpoint_and_headers(self):
        client = ClientConfig(schema={"headers": {"X-Team": "web"}})
        merged = apply_overrides(
            client, None, "https://x/graphql", ("Authorization: Bearer t",), None, None, "graphql"
        )
        assert merged.schema_source.endpoint == "https://x/graphql"
        assert merged.schema_source.headers == {"X-Team": "web", "Authorization": "Bearer t"}
        assert merged.tag_name == "graphql"

    def test_includes_and_excludes(self):
        merged = apply_overrides(ClientConfig(), None, None, (), "a/*.ts,b/*.ts", "**/gen", None)
        assert merged.includes == ["a/*.ts", "b/*.ts"]
        assert merged.excludes == ["**/gen"]
