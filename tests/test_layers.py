"""Tests for layer construction and volatility classification."""

import pytest

from dockopt.dockerfile.layers import (
    Volatility,
    build_layers,
    classify_source,
    classify_sources,
    referenced_variables,
)
from dockopt.dockerfile.models import InstructionKind
from dockopt.dockerfile.parser import parse_text


class TestClassifySource:
    @pytest.mark.parametrize("path", [
        "package.json", "package-lock.json", "yarn.lock", "go.mod", "go.sum",
        "requirements.txt", "requirements-dev.txt", "Gemfile", "Gemfile.lock",
        "pyproject.toml", "Pipfile.lock", "Cargo.toml", "./app/package.json",
    ])
    def test_manifests_are_low_change(self, path):
        assert classify_source(path) == Volatility.LOW_CHANGE

    @pytest.mark.parametrize("path", [".", "./", "*", "src/", "app/.", "lib/*"])
    def test_broad_sources_are_high_change(self, path):
        assert classify_source(path) == Volatility.HIGH_CHANGE

    @pytest.mark.parametrize("path", ["config/nginx.conf", "entrypoint.sh", "/etc/hosts"])
    def test_specific_files_are_fixed(self, path):
        assert classify_source(path) == Volatility.FIXED

    def test_highest_wins(self):
        assert classify_sources(("entrypoint.sh", "package.json")) == Volatility.LOW_CHANGE
        assert classify_sources(("package.json", ".")) == Volatility.HIGH_CHANGE
        assert classify_sources(()) == Volatility.FIXED


class TestBuildLayers:
    def test_only_run_copy_add_create_layers(self, good_dockerfile):
        layers = build_layers(parse_text(good_dockerfile))
        kinds = [layer.kind for layer in layers[0]]
        assert kinds == [
            InstructionKind.COPY,
            InstructionKind.RUN,
            InstructionKind.COPY,
            InstructionKind.RUN,
        ]
        assert [layer.line_no for layer in layers[0]] == [3, 4, 5, 6]

    def test_volatility_per_copy(self, good_dockerfile):
        layers = build_layers(parse_text(good_dockerfile))[0]
        assert layers[0].volatility == Volatility.LOW_CHANGE
        assert layers[0].inputs == ("package*.json",)
        assert layers[2].volatility == Volatility.HIGH_CHANGE
        assert layers[2].copies_whole_context is True

    def test_copy_from_stage_is_fixed(self, multistage_dockerfile):
        layers = build_layers(parse_text(multistage_dockerfile))
        copy = [layer for layer in layers[1] if layer.kind == InstructionKind.COPY][0]
        assert copy.from_stage == "builder"
        assert copy.volatility == Volatility.FIXED
        assert copy.reads_context is False

    def test_keyed_by_stage(self, multistage_dockerfile):
        layers = build_layers(parse_text(multistage_dockerfile))
        assert set(layers) == {0, 1}
        assert len(layers[0]) == 4
        assert len(layers[1]) == 2

    def test_run_variables(self):
        doc = parse_text('FROM alpine:3.19\nRUN echo "$HOME ${APP_DIR:-/app}" $1\n')
        layer = build_layers(doc)[0][0]
        assert layer.variables == frozenset({"HOME", "APP_DIR"})


def test_referenced_variables_ignores_plain_text():
    assert referenced_variables("echo hello") == frozenset()
