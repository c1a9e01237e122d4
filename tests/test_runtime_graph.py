import json
from pathlib import Path

import pytest

from restore_assets.criteria import (
    CompatibilityCriterion,
    build_managed_criteria,
    build_native_criteria,
)
from restore_assets.frameworks import Framework
from restore_assets.runtime_graph import RuntimeGraph


def test_expand_runtime_is_breadth_first_and_ends_at_any():
    graph = RuntimeGraph.default()

    assert graph.expand_runtime("win7-x64") == ["win7-x64", "win7", "win-x64", "win", "any"]


def test_expand_unknown_runtime_returns_only_itself():
    assert RuntimeGraph.default().expand_runtime("plan9-x64") == ["plan9-x64"]


def test_expansion_reaches_general_runtimes_only():
    graph = RuntimeGraph.default()

    assert "win" in graph.expand_runtime("win10-x64")
    assert "linux-x64" in graph.expand_runtime("ubuntu.14.04-x64")
    assert "win7" not in graph.expand_runtime("win")


def test_from_json_reads_runtime_imports(tmp_path: Path):
    runtime_json = tmp_path / "runtime.json"
    runtime_json.write_text(
        json.dumps(
            {
                "runtimes": {
                    "base": {},
                    "corp-x64": {"#import": ["corp", "base"]},
                    "corp": {"#import": ["base"]},
                }
            }
        ),
        encoding="utf-8",
    )

    graph = RuntimeGraph.from_json(runtime_json)

    assert graph.expand_runtime("corp-x64") == ["corp-x64", "corp", "base"]


def test_from_dict_rejects_invalid_imports():
    with pytest.raises(ValueError):
        RuntimeGraph.from_dict({"runtimes": {"a": {"#import": "b"}}})


def test_managed_criteria_fall_back_through_runtimes_then_no_runtime():
    net45 = Framework.parse("net45")

    criteria = build_managed_criteria(net45, "win-x64", RuntimeGraph.default())

    assert criteria == [
        CompatibilityCriterion(net45, "win-x64"),
        CompatibilityCriterion(net45, "win"),
        CompatibilityCriterion(net45, "any"),
        CompatibilityCriterion(net45, None),
    ]
    assert build_managed_criteria(net45, None, RuntimeGraph.default()) == [
        CompatibilityCriterion(net45, None)
    ]


def test_native_criteria_have_no_framework():
    graph = RuntimeGraph.default()

    assert build_native_criteria(None, graph) == []
    assert build_native_criteria("win-x64", graph) == [
        CompatibilityCriterion(None, "win-x64"),
        CompatibilityCriterion(None, "win"),
        CompatibilityCriterion(None, "any"),
    ]
