import pytest

from restore_assets.content_model import (
    AssetCategory,
    ContentItemCollection,
    ManagedCodeConventions,
    PatternTemplate,
    classify,
)
from restore_assets.criteria import build_managed_criteria, build_native_criteria
from restore_assets.frameworks import Framework
from restore_assets.runtime_graph import RuntimeGraph


CONVENTIONS = ManagedCodeConventions()
GRAPH = RuntimeGraph.default()


def fw(name: str) -> Framework:
    return Framework.parse(name)


def select_paths(paths, category, framework="net45", rid=None):
    collection = ContentItemCollection(paths)
    items = collection.select(
        category,
        CONVENTIONS,
        build_managed_criteria(fw(framework), rid, GRAPH),
        build_native_criteria(rid, GRAPH),
    )
    return [item.path for item in items]


def test_template_match_populates_properties():
    template = PatternTemplate("lib/{tfm}/{assembly}")

    assert template.match("lib/net45/Foo.dll") == {"tfm": fw("net45"), "assembly": "Foo.dll"}
    assert template.match("LIB/net45/Foo.dll") is not None
    assert template.match("lib/net45/en/Foo.resources.dll") is None
    assert template.match("lib/net45/Foo.xml") is None


def test_template_trailing_any_spans_segments():
    template = PatternTemplate("runtimes/{rid}/native/{any}")

    assert template.match("runtimes/win-x64/native/sub/foo.so") == {
        "rid": "win-x64",
        "any": "sub/foo.so",
    }
    assert template.match("runtimes/win-x64/native") is None


def test_template_defaults_and_unknown_placeholders():
    template = PatternTemplate("lib/{assembly}", defaults=(("tfm", "net"),))

    assert template.match("lib/Foo.dll")["tfm"] == fw("net")
    with pytest.raises(ValueError):
        PatternTemplate("lib/{flavor}/{assembly}")


def test_resource_classification_requires_locale():
    paths = [
        "lib/net45/en-US/Foo.resources.dll",
        "lib/net45/Foo.resources.dll",
        "lib/net45/x86/Foo.resources.dll",
        "lib/net45/de/Foo.dll",
    ]

    items = classify(paths, CONVENTIONS.resource_assemblies)

    assert [(item.path, item.locale) for item in items] == [
        ("lib/net45/en-US/Foo.resources.dll", "en-US"),
    ]


def test_unmatched_paths_are_not_classified():
    items = classify(["content/readme.txt", "tools/install.ps1"], CONVENTIONS.runtime_assemblies)

    assert items == []


def test_groups_share_framework_and_runtime():
    collection = ContentItemCollection(
        ["lib/net45/A.dll", "lib/net45/B.dll", "lib/net40/A.dll", "runtimes/win/lib/net45/A.dll"]
    )

    groups = collection.find_item_groups(CONVENTIONS.runtime_assemblies)

    assert [(group.framework, group.runtime_identifier, len(group.items)) for group in groups] == [
        (fw("net45"), None, 2),
        (fw("net40"), None, 1),
        (fw("net45"), "win", 1),
    ]


def test_groups_and_items_are_hashable():
    collection = ContentItemCollection(["runtimes/win/lib/net45/A.dll"])

    group = collection.find_item_groups(CONVENTIONS.runtime_assemblies)[0]

    assert group.properties == (("rid", "win"), ("tfm", fw("net45")))
    assert group.items[0].get("assembly") == "A.dll"
    assert len({group, collection.find_item_groups(CONVENTIONS.runtime_assemblies)[0]}) == 1


def test_nearest_framework_group_is_selected_whole():
    paths = ["lib/net40/A.dll", "lib/net45/A.dll", "lib/net45/B.dll", "lib/netstandard1.0/A.dll"]

    assert select_paths(paths, AssetCategory.RUNTIME, "net46") == ["lib/net45/A.dll", "lib/net45/B.dll"]
    assert select_paths(paths, AssetCategory.RUNTIME, "netstandard1.3") == ["lib/netstandard1.0/A.dll"]
    assert select_paths(paths, AssetCategory.RUNTIME, "sl5") == []


def test_compile_falls_back_to_runtime_assets():
    paths = ["lib/net45/A.dll", "lib/net45/A.xml"]

    compile_paths = select_paths(paths, AssetCategory.COMPILE)

    assert compile_paths == ["lib/net45/A.dll"]
    assert compile_paths == select_paths(paths, AssetCategory.RUNTIME)


def test_compile_prefers_reference_assemblies():
    paths = ["ref/netstandard1.0/A.dll", "lib/net45/A.dll"]

    assert select_paths(paths, AssetCategory.COMPILE) == ["ref/netstandard1.0/A.dll"]
    assert select_paths(paths, AssetCategory.RUNTIME) == ["lib/net45/A.dll"]


def test_runtime_specific_assets_win_when_runtime_is_known():
    paths = ["lib/net45/A.dll", "runtimes/win/lib/net45/A.dll"]

    assert select_paths(paths, AssetCategory.RUNTIME, rid="win7-x64") == ["runtimes/win/lib/net45/A.dll"]
    assert select_paths(paths, AssetCategory.RUNTIME, rid="linux-x64") == ["lib/net45/A.dll"]
    assert select_paths(paths, AssetCategory.RUNTIME) == ["lib/net45/A.dll"]


def test_placeholder_file_claims_the_framework():
    paths = ["lib/net45/_._", "lib/netstandard1.0/A.dll"]

    assert select_paths(paths, AssetCategory.RUNTIME) == ["lib/net45/_._"]


def test_root_lib_assemblies_apply_to_desktop_only():
    paths = ["lib/A.dll"]

    assert select_paths(paths, AssetCategory.RUNTIME, "net20") == ["lib/A.dll"]
    assert select_paths(paths, AssetCategory.RUNTIME, "netstandard1.3") == []


def test_native_assets_follow_runtime_fallback():
    paths = ["runtimes/win7-x64/native/a.dll", "runtimes/win/native/b.dll"]

    assert select_paths(paths, AssetCategory.NATIVE, rid="win7-x64") == ["runtimes/win7-x64/native/a.dll"]
    assert select_paths(paths, AssetCategory.NATIVE, rid="win10-x86") == ["runtimes/win/native/b.dll"]
    assert select_paths(paths, AssetCategory.NATIVE) == []


def test_compile_category_precedence():
    assert AssetCategory.COMPILE.pattern_sets(CONVENTIONS) == (
        CONVENTIONS.compile_assemblies,
        CONVENTIONS.runtime_assemblies,
    )
    assert AssetCategory.NATIVE.uses_native_criteria
    assert not AssetCategory.RESOURCE.uses_native_criteria
