"""The configuration record accumulated by a task, and its frozen form."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from loguru import logger

from .entries import EntryList, resolve_class_path
from .types import (
    UNSET,
    ClassPathEntry,
    ClassSpecificationRule,
    OutputTarget,
)

# Fields of Configuration with no direct counterpart in FrozenConfiguration.
_ACCUMULATORS = frozenset(
    {
        "in_jars",
        "out_jars",
        "library_jars",
        "configuration_files",
        "in_jar_counts",
        "out_jar_batches",
    }
)


@dataclass
class Configuration:
    """Mutable configuration record owned by a single task.

    Every setting starts at the default the processing engine expects.
    List settings start as None, meaning "not configured", which the
    engine treats differently from an empty list.
    """

    # Class path and configuration file entries, unresolved.
    in_jars: EntryList = field(default_factory=lambda: EntryList("injars"))
    out_jars: EntryList = field(default_factory=lambda: EntryList("outjars"))
    library_jars: EntryList = field(default_factory=lambda: EntryList("libraryjars"))
    configuration_files: EntryList = field(
        default_factory=lambda: EntryList("configuration")
    )
    # Number of input entries present at each outjars call.
    in_jar_counts: List[int] = field(default_factory=list)
    # Number of output entries added by each outjars call.
    out_jar_batches: List[int] = field(default_factory=list)

    # Input settings.
    skip_non_public_library_classes: bool = False
    skip_non_public_library_class_members: bool = True
    keep_directories: Optional[List[str]] = None
    target_class_version: Optional[str] = None
    last_modified: int = 0

    # Keep settings.
    keep: Optional[List[ClassSpecificationRule]] = None
    print_seeds: OutputTarget = UNSET

    # Shrinking settings.
    shrink: bool = True
    print_usage: OutputTarget = UNSET
    why_are_you_keeping: Optional[List[ClassSpecificationRule]] = None

    # Optimization settings.
    optimize: bool = True
    optimizations: Optional[List[str]] = None
    optimization_passes: int = 1
    assume_no_side_effects: Optional[List[ClassSpecificationRule]] = None
    assume_no_external_side_effects: Optional[List[ClassSpecificationRule]] = None
    assume_no_escaping_parameters: Optional[List[ClassSpecificationRule]] = None
    assume_no_external_return_values: Optional[List[ClassSpecificationRule]] = None
    assume_values: Optional[List[ClassSpecificationRule]] = None
    allow_access_modification: bool = False
    merge_interfaces_aggressively: bool = False

    # Obfuscation settings.
    obfuscate: bool = True
    print_mapping: OutputTarget = UNSET
    apply_mapping: Optional[Path] = None
    obfuscation_dictionary: Optional[Path] = None
    class_obfuscation_dictionary: Optional[Path] = None
    package_obfuscation_dictionary: Optional[Path] = None
    overload_aggressively: bool = False
    use_unique_class_member_names: bool = False
    use_mixed_case_class_names: bool = True
    keep_package_names: Optional[List[str]] = None
    flatten_package_hierarchy: Optional[str] = None
    repackage_classes: Optional[str] = None
    keep_attributes: Optional[List[str]] = None
    keep_parameter_names: bool = False
    new_source_file_attribute: Optional[str] = None
    adapt_class_strings: Optional[List[str]] = None
    adapt_resource_file_names: Optional[List[str]] = None
    adapt_resource_file_contents: Optional[List[str]] = None

    # Preverification settings.
    preverify: bool = True
    micro_edition: bool = False
    android: bool = False

    # Signing settings.
    key_stores: Optional[List[Path]] = None
    key_store_passwords: Optional[List[str]] = None
    key_aliases: Optional[List[str]] = None
    key_passwords: Optional[List[str]] = None

    # General settings.
    verbose: bool = False
    note: Optional[List[str]] = None
    warn: Optional[List[str]] = None
    ignore_warnings: bool = False
    print_configuration: OutputTarget = UNSET
    dump: OutputTarget = UNSET
    add_configuration_debugging: bool = False
    keep_kotlin_metadata: bool = False
    extra_jar: Optional[Path] = None

    def program_entries(self) -> List[Tuple[Any, bool]]:
        """Interleave raw input and output entries in declaration order.

        Each outjars call follows the inputs that existed when it was made.

        Returns:
            Pairs of (raw entry, output flag).
        """
        inputs = self.in_jars.raw_entries()
        outputs = self.out_jars.raw_entries()
        ordered: List[Tuple[Any, bool]] = []
        in_pos = 0
        out_pos = 0
        for count, batch in zip(self.in_jar_counts, self.out_jar_batches):
            if count > in_pos:
                ordered.extend((entry, False) for entry in inputs[in_pos:count])
                in_pos = count
            ordered.extend((entry, True) for entry in outputs[out_pos:out_pos + batch])
            out_pos += batch
        ordered.extend((entry, False) for entry in inputs[in_pos:])
        ordered.extend((entry, True) for entry in outputs[out_pos:])
        return ordered

    def freeze(self, base_dir: Path, properties: Mapping[str, str]) -> "FrozenConfiguration":
        """Resolve all entries and return an immutable copy.

        Args:
            base_dir: Directory relative entries are anchored at.
            properties: Values for ``<name>`` references in strings.

        Returns:
            FrozenConfiguration for the processing engine.
        """
        values: Dict[str, Any] = {
            f.name: _frozen(getattr(self, f.name))
            for f in fields(self)
            if f.name not in _ACCUMULATORS
        }
        frozen = FrozenConfiguration(
            program_jars=tuple(
                resolve_class_path(self.program_entries(), base_dir, properties)
            ),
            library_jars=tuple(
                resolve_class_path(
                    ((entry, False) for entry in self.library_jars.raw_entries()),
                    base_dir,
                    properties,
                )
            ),
            configuration_files=tuple(
                self.configuration_files.resolved_files(base_dir, properties)
            ),
            **values,
        )
        logger.debug(
            "Froze configuration with {} program and {} library entries",
            len(frozen.program_jars),
            len(frozen.library_jars),
        )
        return frozen


def _frozen(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(value)
    return value


@dataclass(frozen=True)
class FrozenConfiguration:
    """Immutable configuration handed to the processing engine.

    Field meanings match ``Configuration``; lists become tuples and
    class path entries are resolved to absolute paths.
    """

    program_jars: Tuple[ClassPathEntry, ...] = ()
    library_jars: Tuple[ClassPathEntry, ...] = ()
    configuration_files: Tuple[Path, ...] = ()

    skip_non_public_library_classes: bool = False
    skip_non_public_library_class_members: bool = True
    keep_directories: Optional[Tuple[str, ...]] = None
    target_class_version: Optional[str] = None
    last_modified: int = 0

    keep: Optional[Tuple[ClassSpecificationRule, ...]] = None
    print_seeds: OutputTarget = UNSET

    shrink: bool = True
    print_usage: OutputTarget = UNSET
    why_are_you_keeping: Optional[Tuple[ClassSpecificationRule, ...]] = None

    optimize: bool = True
    optimizations: Optional[Tuple[str, ...]] = None
    optimization_passes: int = 1
    assume_no_side_effects: Optional[Tuple[ClassSpecificationRule, ...]] = None
    assume_no_external_side_effects: Optional[Tuple[ClassSpecificationRule, ...]] = None
    assume_no_escaping_parameters: Optional[Tuple[ClassSpecificationRule, ...]] = None
    assume_no_external_return_values: Optional[Tuple[ClassSpecificationRule, ...]] = None
    assume_values: Optional[Tuple[ClassSpecificationRule, ...]] = None
    allow_access_modification: bool = False
    merge_interfaces_aggressively: bool = False

    obfuscate: bool = True
    print_mapping: OutputTarget = UNSET
    apply_mapping: Optional[Path] = None
    obfuscation_dictionary: Optional[Path] = None
    class_obfuscation_dictionary: Optional[Path] = None
    package_obfuscation_dictionary: Optional[Path] = None
    overload_aggressively: bool = False
    use_unique_class_member_names: bool = False
    use_mixed_case_class_names: bool = True
    keep_package_names: Optional[Tuple[str, ...]] = None
    flatten_package_hierarchy: Optional[str] = None
    repackage_classes: Optional[str] = None
    keep_attributes: Optional[Tuple[str, ...]] = None
    keep_parameter_names: bool = False
    new_source_file_attribute: Optional[str] = None
    adapt_class_strings: Optional[Tuple[str, ...]] = None
    adapt_resource_file_names: Optional[Tuple[str, ...]] = None
    adapt_resource_file_contents: Optional[Tuple[str, ...]] = None

    preverify: bool = True
    micro_edition: bool = False
    android: bool = False

    key_stores: Optional[Tuple[Path, ...]] = None
    key_store_passwords: Optional[Tuple[str, ...]] = None
    key_aliases: Optional[Tuple[str, ...]] = None
    key_passwords: Optional[Tuple[str, ...]] = None

    verbose: bool = False
    note: Optional[Tuple[str, ...]] = None
    warn: Optional[Tuple[str, ...]] = None
    ignore_warnings: bool = False
    print_configuration: OutputTarget = UNSET
    dump: OutputTarget = UNSET
    add_configuration_debugging: bool = False
    keep_kotlin_metadata: bool = False
    extra_jar: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        """Render the configuration as JSON-serializable data."""
        return {f.name: _render(getattr(self, f.name)) for f in fields(self)}


def _render(value: Any) -> Any:
    if isinstance(value, OutputTarget):
        return value.describe()
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (ClassPathEntry, ClassSpecificationRule)):
        return value.to_dict()
    if isinstance(value, tuple):
        return [_render(item) for item in value]
    return value
