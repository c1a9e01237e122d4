from restore_assets.adjustments import (
    apply_contract_override,
    apply_reference_filter,
    build_reference_filter,
    contract_path,
    framework_assemblies_apply,
)
from restore_assets.frameworks import Framework
from restore_assets.models import LockFileItem


def items(*paths):
    return tuple(LockFileItem(path) for path in paths)


def test_reference_filter_only_prunes_lib_entries():
    runtime = items("lib/net45/Foo.dll", "lib/net45/Bar.dll", "runtimes/win/lib/net45/Bar.dll")

    filtered = apply_reference_filter(runtime, build_reference_filter(["Foo.dll"]))

    assert filtered == items("lib/net45/Foo.dll", "runtimes/win/lib/net45/Bar.dll")


def test_reference_filter_is_case_insensitive():
    filtered = apply_reference_filter(items("lib/net45/Foo.dll"), build_reference_filter(["foo.DLL"]))

    assert filtered == items("lib/net45/Foo.dll")


def test_missing_reference_filter_keeps_everything():
    runtime = items("lib/net45/Foo.dll", "lib/net45/Bar.dll")

    assert build_reference_filter(None) is None
    assert apply_reference_filter(runtime, None) == runtime


def test_empty_reference_filter_removes_all_lib_entries():
    runtime = items("lib/net45/Foo.dll", "runtimes/win/lib/net45/Foo.dll")

    assert apply_reference_filter(runtime, build_reference_filter([])) == items(
        "runtimes/win/lib/net45/Foo.dll"
    )


def test_contract_override_for_non_desktop_frameworks():
    files = ["lib/contract/Foo.dll", "lib/netstandard1.0/Foo.dll", "lib/net45/Foo.dll"]
    compile_items = items("lib/netstandard1.0/Foo.dll")
    runtime_items = items("lib/netstandard1.0/Foo.dll")

    result = apply_contract_override(
        compile_items, runtime_items, files, "Foo", Framework.parse("netstandard1.3")
    )

    assert result == items(contract_path("Foo"))
    assert contract_path("Foo") == "lib/contract/Foo.dll"


def test_contract_override_is_skipped_when_conditions_fail():
    files = ["lib/contract/Foo.dll", "lib/net45/Foo.dll"]
    compile_items = items("lib/net45/Foo.dll")

    desktop = apply_contract_override(compile_items, compile_items, files, "Foo", Framework.parse("net45"))
    no_runtime = apply_contract_override((), (), files, "Foo", Framework.parse("dnxcore50"))
    no_contract = apply_contract_override(
        compile_items, compile_items, ["lib/net45/Foo.dll"], "Foo", Framework.parse("dnxcore50")
    )

    assert desktop == compile_items
    assert no_runtime == ()
    assert no_contract == compile_items


def test_framework_assemblies_excluded_for_legacy_core_frameworks():
    assert not framework_assemblies_apply(Framework.parse("aspnetcore50"))
    assert not framework_assemblies_apply(Framework.parse("dnxcore50"))
    assert not framework_assemblies_apply(Framework.parse("DNXCore,Version=v5.0"))
    assert framework_assemblies_apply(Framework.parse("net45"))
    assert framework_assemblies_apply(Framework.parse("aspnet50"))
