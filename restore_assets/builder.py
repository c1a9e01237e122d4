"""
Construction of lock-file target libraries for a package and restore target.
"""

from __future__ import annotations

import logging
from typing import Optional

from .adjustments import (
    apply_contract_override,
    apply_reference_filter,
    build_reference_filter,
    framework_assemblies_apply,
)
from .catalog import select_file_listing
from .content_model import AssetCategory, ContentItem, ContentItemCollection
from .criteria import build_managed_criteria, build_native_criteria
from .frameworks import Framework
from .interfaces import PackagePathResolver
from .models import (
    LocalPackageInfo,
    LockFileItem,
    LockFileLibrary,
    LockFileTargetLibrary,
    PackageIdentity,
    RestoreTarget,
)
from .nuspec import get_nearest_group, load_metadata


logger = logging.getLogger(__name__)


def _to_lock_file_item(item: ContentItem) -> LockFileItem:
    return LockFileItem(item.path)


def _to_resource_lock_file_item(item: ContentItem) -> LockFileItem:
    return LockFileItem(item.path, {"locale": str(item.locale)})


class LockFileLibraryBuilder:
    """Build the target library record of a package for a restore target."""

    def __init__(self, path_resolver: PackagePathResolver) -> None:
        self.path_resolver = path_resolver

    def build(
        self,
        package: LocalPackageInfo,
        target: RestoreTarget,
        library: Optional[LockFileLibrary] = None,
        corrected_package_name: Optional[str] = None,
        framework_override: Optional[Framework] = None,
    ) -> LockFileTargetLibrary:
        """Select the assets of ``package`` that apply to ``target``.

        Args:
            package: The installed package
            target: Restore target framework, runtime identifier and conventions
            library: Library entry of a previous pass; its file listing is used
                instead of opening the archive
            corrected_package_name: Id casing used by the dependency graph,
                preferred over the manifest-declared id for the record name
            framework_override: Framework to use instead of ``target.framework``

        Returns:
            The immutable target library record

        Raises:
            MissingPackageFile: If the package archive cannot be read
            MissingNuspec: If the package manifest cannot be found
            MalformedNuspec: If the package manifest cannot be parsed
        """
        framework = framework_override or target.framework
        runtime_identifier = target.runtime_identifier
        conventions = target.conventions

        # package.id comes from the manifest and may be miscased
        identity = package.identity
        if corrected_package_name:
            corrected = PackageIdentity(corrected_package_name, package.version)
            if corrected != identity:
                logger.warning("Corrected name %s does not match package %s", corrected_package_name, identity)
            identity = corrected
        name = identity.id

        cached_files = library.files if library is not None else None
        files = select_file_listing(cached_files, package.archive_path).list_files()
        contents = ContentItemCollection(files)

        nuspec = load_metadata(package.id, package.version, self.path_resolver)

        dependencies = ()
        dependency_group = get_nearest_group(framework, nuspec.get_dependency_groups())
        if dependency_group is not None:
            dependencies = dependency_group.packages

        reference_group = get_nearest_group(framework, nuspec.get_reference_groups())
        reference_filter = build_reference_filter(
            reference_group.items if reference_group is not None else None
        )

        framework_assemblies = ()
        if framework_assemblies_apply(framework):
            assembly_group = get_nearest_group(framework, nuspec.get_framework_reference_groups())
            if assembly_group is not None:
                framework_assemblies = assembly_group.items

        native_criteria = build_native_criteria(runtime_identifier, target.runtime_graph)
        managed_criteria = build_managed_criteria(framework, runtime_identifier, target.runtime_graph)

        def select(category: AssetCategory):
            return contents.select(category, conventions, managed_criteria, native_criteria)

        compile_items = tuple(_to_lock_file_item(item) for item in select(AssetCategory.COMPILE))
        runtime_items = tuple(_to_lock_file_item(item) for item in select(AssetCategory.RUNTIME))
        resource_items = tuple(
            _to_resource_lock_file_item(item) for item in select(AssetCategory.RESOURCE)
        )
        native_items = tuple(_to_lock_file_item(item) for item in select(AssetCategory.NATIVE))

        compile_items = apply_contract_override(
            compile_items, runtime_items, files, package.id, framework
        )
        runtime_items = apply_reference_filter(runtime_items, reference_filter)
        compile_items = apply_reference_filter(compile_items, reference_filter)

        logger.info(
            "%s for %s: %d compile, %d runtime, %d resource, %d native",
            identity,
            f"{framework}/{runtime_identifier}" if runtime_identifier else framework,
            len(compile_items),
            len(runtime_items),
            len(resource_items),
            len(native_items),
        )

        return LockFileTargetLibrary(
            name=name,
            version=package.version,
            dependencies=tuple(dependencies),
            framework_assemblies=tuple(framework_assemblies),
            compile_time_assemblies=compile_items,
            runtime_assemblies=runtime_items,
            resource_assemblies=resource_items,
            native_libraries=native_items,
        )


def create_lock_file_target_library(
    package: LocalPackageInfo,
    target: RestoreTarget,
    path_resolver: PackagePathResolver,
    library: Optional[LockFileLibrary] = None,
    corrected_package_name: Optional[str] = None,
    framework_override: Optional[Framework] = None,
) -> LockFileTargetLibrary:
    """Build a target library with a one-off builder."""
    return LockFileLibraryBuilder(path_resolver).build(
        package,
        target,
        library=library,
        corrected_package_name=corrected_package_name,
        framework_override=framework_override,
    )
