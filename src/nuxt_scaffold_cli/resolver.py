"""Selection -> packages / module registrations.

Both resolvers are total: any ``Selection`` (even one whose gated fields are
out of gate) produces a result, and neither touches the filesystem.
"""

from dataclasses import dataclass
from typing import Mapping

from .config_merge import ConfigFragments
from .features import DEFAULT_CATALOG, FeatureCatalog, FeatureDescriptor, StorageDriver
from .selection import NONE, Selection


@dataclass(frozen=True)
class PackageSet:
    dependencies: tuple[str, ...]
    dev_dependencies: tuple[str, ...]


@dataclass(frozen=True)
class ModuleRegistrations:
    module_ids: tuple[str, ...]
    stylesheets: tuple[str, ...]
    security_options: Mapping[str, object] | None = None
    secondary_storage: StorageDriver | None = None

    def to_fragments(self) -> ConfigFragments:
        storage = (self.secondary_storage,) if self.secondary_storage else ()
        return ConfigFragments(
            modules=self.module_ids,
            css=self.stylesheets,
            security=self.security_options,
            storage=storage,
        )


def _dedupe(values) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


def _enabled_keys(selection: Selection) -> set[str]:
    keys = set(selection.modules) | set(selection.optional_modules) | set(selection.storage)
    for gated in (selection.effective_orm, selection.auth, selection.effective_email_service):
        if gated != NONE:
            keys.add(gated)
    return keys


def selected_features(selection: Selection, catalog: FeatureCatalog = DEFAULT_CATALOG) -> list[FeatureDescriptor]:
    """Descriptors enabled by ``selection``, in catalog priority order."""
    enabled = _enabled_keys(selection)
    features = []
    for key in catalog.priority:
        descriptor = catalog.get(key)
        if key in enabled and descriptor is not None:
            features.append(descriptor)
    return features


def resolve_packages(selection: Selection, catalog: FeatureCatalog = DEFAULT_CATALOG) -> PackageSet:
    dependencies: list[str] = []
    dev_dependencies: list[str] = []
    for feature in selected_features(selection, catalog):
        dependencies.extend(feature.dependencies)
        dev_dependencies.extend(feature.dev_dependencies)
    dev_dependencies.extend(catalog.baseline_dev_dependencies)
    return PackageSet(_dedupe(dependencies), _dedupe(dev_dependencies))


def resolve_registrations(selection: Selection, catalog: FeatureCatalog = DEFAULT_CATALOG) -> ModuleRegistrations:
    module_ids: list[str] = []
    stylesheets: list[str] = []
    security_options = None
    secondary_storage = None
    for feature in selected_features(selection, catalog):
        module_ids.extend(feature.nuxt_modules)
        if feature.stylesheet:
            stylesheets.append(feature.stylesheet)
        if feature.security_options is not None:
            security_options = feature.security_options
        if feature.secondary_storage is not None:
            secondary_storage = feature.secondary_storage
    return ModuleRegistrations(
        module_ids=_dedupe(module_ids),
        stylesheets=_dedupe(stylesheets),
        security_options=security_options,
        secondary_storage=secondary_storage,
    )


def resolve_module_add_targets(selection: Selection, catalog: FeatureCatalog = DEFAULT_CATALOG) -> list[str]:
    """Names to pass to ``nuxi module add``, in priority order."""
    targets = [f.module_add for f in selected_features(selection, catalog) if f.module_add]
    return list(_dedupe(targets))
