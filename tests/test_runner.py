"""Tests for the generation pipeline and run_codegen."""

import asyncio
import json

import pytest

from conftest import HERO_QUERY, make_project, write
from gql_clientgen.core.errors import NoDefinitionsError, SchemaLoadError
from gql_clientgen.core.request import CodegenFlags, validate_request
from gql_clientgen.core.runner import CodegenPipeline, run_codegen
from gql_clientgen.core.watch import RunUntilKilled


class FlakyResolver:
    """Fails the first resolution, then delegates."""

    def __init__(self, inner):
        self.inner = inner
        self.calls = 0

    def resolve(self, tag=None):
        self.calls += 1
        if self.calls == 1:
            raise SchemaLoadError("registry unavailable")
        return self.inner.resolve(tag)


class EndedSubscription:
    def __init__(self):
        self.closed = 0

    async def _events(self):
        return
        yield

    def __aiter__(self):
        return self._events()

    def close(self):
        self.closed += 1


@pytest.fixture
def project(tmp_path, schema_file):
    write(tmp_path / "src/hero.graphql", HERO_QUERY)
    return make_project(tmp_path, schema_file)


@pytest.fixture
def request_json(tmp_path):
    return validate_request(CodegenFlags(target="json", output=str(tmp_path / "operations.json")))


class TestCodegenPipeline:
    """Tests for CodegenPipeline."""

    def test_run_writes_files(self, project, request_json, tmp_path):
        assert CodegenPipeline(request_json, project).run() == 1
        manifest = json.loads((tmp_path / "operations.json").read_text())
        assert [op["operationName"] for op in manifest["operations"]] == ["HeroName"]

    def test_schema_is_cached(self, project, request_json):
        calls = []
        original = project.resolver.resolve
        project.resolver.resolve = lambda tag=None: calls.append(tag) or original(tag)

        pipeline = CodegenPipeline(request_json, project)
        pipeline.run()
        pipeline.run()
        assert calls == [None]

    def test_failed_schema_is_retried(self, project, request_json):
        project.resolver = FlakyResolver(project.resolver)
        pipeline = CodegenPipeline(request_json, project)

        with pytest.raises(SchemaLoadError):
            pipeline.run()
        assert pipeline.run() == 1
        assert project.resolver.calls == 2

    def test_tag_is_passed_to_resolver(self, project, tmp_path):
        seen = []
        original = project.resolver.resolve
        project.resolver.resolve = lambda tag=None: seen.append(tag) or original(tag)
        request = validate_request(
            CodegenFlags(target="json", output=str(tmp_path / "ops.json"), tag="current")
        )
        CodegenPipeline(request, project).run()
        assert seen == ["current"]

    def test_no_documents(self, tmp_path, schema_file, request_json):
        project = make_project(tmp_path, schema_file)
        with pytest.raises(NoDefinitionsError):
            CodegenPipeline(request_json, project).run()


class TestRunCodegen:
    """Tests for run_codegen."""

    def test_one_shot_returns_count(self, project, request_json):
        assert asyncio.run(run_codegen(request_json, project)) == 1

    def test_one_shot_propagates_errors(self, tmp_path, schema_file, request_json):
        project = make_project(tmp_path, schema_file)
        with pytest.raises(NoDefinitionsError):
            asyncio.run(run_codegen(request_json, project))

    def test_watch_mode(self, project, request_json, tmp_path):
        subscription = EndedSubscription()
        states = []

        def subscribe(state):
            states.append(state)
            return subscription

        result = asyncio.run(run_codegen(
            request_json, project, watch=True, is_tty=False,
            subscribe=subscribe, strategy=RunUntilKilled(),
        ))

        assert result is None
        assert (tmp_path / "operations.json").is_file()
        assert subscription.closed == 1
        [state] = states
        assert state.include_patterns == frozenset(project.config.includes)
        assert str(tmp_path / "operations.json") in state.exclude_markers

    def test_watch_starts_after_undecodable_file(self, project, request_json, tmp_path):
        (tmp_path / "src/legacy.ts").write_bytes("const café = 1;".encode("latin-1"))
        subscription = EndedSubscription()
        opened = []

        def subscribe(state):
            opened.append(state)
            return subscription

        result = asyncio.run(run_codegen(
            request_json, project, watch=True, is_tty=False,
            subscribe=subscribe, strategy=RunUntilKilled(),
        ))

        assert result is None
        assert len(opened) == 1
        assert not (tmp_path / "operations.json").exists()
