"""The shrink task: accumulates configuration from build-script calls."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

from loguru import logger

from .configuration import Configuration, FrozenConfiguration
from .dsl import directive, keyword, with_dsl_aliases
from .engine import Engine
from .errors import SpecificationTypeError, UnknownFieldError
from .filters import FilterSpec, extend_filter, internal_class_name
from .paths import normalize_path
from .types import (
    OUTPUT_FIELDS,
    STANDARD_STREAM,
    ClassSpecificationRule,
    OutputTarget,
    PathLike,
)

if TYPE_CHECKING:
    from .project import Project

Specification = Union[str, Mapping[str, Any]]


@with_dsl_aliases
class ShrinkTask:
    """Collect the configuration of one shrinking step.

    Methods are named after the configuration keywords of the processing
    engine and can be called in any order and any number of times. Each
    call updates ``record`` in place; nothing is validated until the
    engine runs.
    """

    def __init__(self, name: str, project: "Project"):
        """Initialize a task with a fresh configuration record.

        Args:
            name: Task name, unique within its project.
            project: Project supplying the base directory and properties.
        """
        self.name = name
        self.project = project
        self.record = Configuration()

    @property
    def base_dir(self) -> Path:
        return self.project.base_dir

    @property
    def properties(self) -> Dict[str, str]:
        return self.project.properties

    def _set(self, field: str, value: Any) -> None:
        setattr(self.record, field, value)
        logger.debug("{}: {} = {!r}", self.name, field, value)

    def _path(self, item: PathLike) -> Path:
        return normalize_path(item, self.base_dir, self.properties)

    # Class path settings.

    @directive
    def configuration(self, files: Any) -> None:
        """Add configuration files (a path or a collection of paths)."""
        self.record.configuration_files.append(files)
        logger.debug("{}: configuration += {!r}", self.name, files)

    @directive
    def injars(self, files: Any, filter: Optional[FilterSpec] = None) -> None:
        """Add program input entries, optionally filtered."""
        self.record.in_jars.append_with_filter(files, filter)
        logger.debug("{}: injars += {!r} (filter={!r})", self.name, files, filter)

    @directive
    def outjars(self, files: Any, filter: Optional[FilterSpec] = None) -> None:
        """Add program output entries, optionally filtered.

        The outputs are written from the input entries added before this call.
        """
        before = len(self.record.out_jars)
        self.record.out_jars.append_with_filter(files, filter)
        self.record.in_jar_counts.append(len(self.record.in_jars))
        self.record.out_jar_batches.append(len(self.record.out_jars) - before)
        logger.debug("{}: outjars += {!r} (filter={!r})", self.name, files, filter)

    @directive
    def libraryjars(self, files: Any, filter: Optional[FilterSpec] = None) -> None:
        """Add library entries, optionally filtered."""
        self.record.library_jars.append_with_filter(files, filter)
        logger.debug("{}: libraryjars += {!r} (filter={!r})", self.name, files, filter)

    def get_configuration_files(self) -> List[Any]:
        return self.record.configuration_files.raw_entries()

    def get_in_jar_files(self) -> List[Any]:
        return self.record.in_jars.raw_entries()

    def get_out_jar_files(self) -> List[Any]:
        return self.record.out_jars.raw_entries()

    def get_library_jar_files(self) -> List[Any]:
        return self.record.library_jars.raw_entries()

    def get_in_jar_filters(self) -> List[Optional[FilterSpec]]:
        return self.record.in_jars.filters()

    def get_out_jar_filters(self) -> List[Optional[FilterSpec]]:
        return self.record.out_jars.filters()

    def get_library_jar_filters(self) -> List[Optional[FilterSpec]]:
        return self.record.library_jars.filters()

    def get_in_jar_counts(self) -> List[int]:
        return self.record.in_jar_counts

    def get_configuration_file_collection(self) -> List[Path]:
        return self.record.configuration_files.resolved_files(self.base_dir, self.properties)

    def get_in_jar_file_collection(self) -> List[Path]:
        return self.record.in_jars.resolved_files(self.base_dir, self.properties)

    def get_out_jar_file_collection(self) -> List[Path]:
        return self.record.out_jars.resolved_files(self.base_dir, self.properties)

    def get_library_jar_file_collection(self) -> List[Path]:
        return self.record.library_jars.resolved_files(self.base_dir, self.properties)

    # Output targets.

    def _check_output_field(self, field: str) -> None:
        if field not in OUTPUT_FIELDS:
            raise UnknownFieldError(
                f"Unknown output field '{field}'; expected one of {', '.join(OUTPUT_FIELDS)}"
            )

    def set_to_standard_stream(self, field: str) -> None:
        """Direct a report to standard output, replacing any file target."""
        self._check_output_field(field)
        self._set(field, STANDARD_STREAM)

    def set_to_file(self, field: str, path: PathLike) -> None:
        """Direct a report to a file, replacing any previous target."""
        self._check_output_field(field)
        self._set(field, OutputTarget.file(self._path(path)))

    def output_target(self, field: str) -> OutputTarget:
        self._check_output_field(field)
        return getattr(self.record, field)

    def resolved_output_file(self, field: str) -> Optional[Path]:
        """Return the report file, or None when unset or sent to standard output."""
        return self.output_target(field).file_or_none()

    def output_files(self) -> Dict[str, Path]:
        """Return the report files that can be tracked as task outputs."""
        files: Dict[str, Path] = {}
        for field in OUTPUT_FIELDS:
            path = self.resolved_output_file(field)
            if path is not None:
                files[field] = path
        return files

    def _output(self, field: str, file: Optional[PathLike]) -> None:
        if file is None:
            self.set_to_standard_stream(field)
        else:
            self.set_to_file(field, file)

    @keyword
    def printseeds(self, file: Optional[PathLike] = None) -> None:
        self._output("print_seeds", file)

    @keyword
    def printusage(self, file: Optional[PathLike] = None) -> None:
        self._output("print_usage", file)

    @keyword
    def printmapping(self, file: Optional[PathLike] = None) -> None:
        self._output("print_mapping", file)

    @keyword
    def printconfiguration(self, file: Optional[PathLike] = None) -> None:
        self._output("print_configuration", file)

    @keyword
    def dump(self, file: Optional[PathLike] = None) -> None:
        self._output("dump", file)

    def get_print_seeds_file(self) -> Optional[Path]:
        return self.resolved_output_file("print_seeds")

    def get_print_usage_file(self) -> Optional[Path]:
        return self.resolved_output_file("print_usage")

    def get_print_mapping_file(self) -> Optional[Path]:
        return self.resolved_output_file("print_mapping")

    def get_print_configuration_file(self) -> Optional[Path]:
        return self.resolved_output_file("print_configuration")

    def get_dump_file(self) -> Optional[Path]:
        return self.resolved_output_file("dump")

    # Input settings.

    @keyword
    def skipnonpubliclibraryclasses(self) -> None:
        self._set("skip_non_public_library_classes", True)

    @keyword
    def dontskipnonpubliclibraryclassmembers(self) -> None:
        self._set("skip_non_public_library_class_members", False)

    @keyword
    def keepdirectories(self, filter: Optional[str] = None) -> None:
        self._set("keep_directories", extend_filter(self.record.keep_directories, filter))

    @directive
    def target(self, version: str) -> None:
        """Set the target class file version, e.g. "1.8" or "11"."""
        self._set("target_class_version", str(version))

    @keyword
    def forceprocessing(self) -> None:
        self._set("last_modified", sys.maxsize)

    # Keep and assume rules.

    def _add_rule(
        self,
        field: str,
        kind: str,
        specification: Specification,
        allow_shrinking: bool = False,
        allow_optimization: bool = False,
        allow_obfuscation: bool = False,
    ) -> None:
        if not isinstance(specification, (str, Mapping)):
            raise SpecificationTypeError(
                f"{kind} expects a class specification string or mapping, "
                f"got {type(specification).__name__}: {specification!r}"
            )
        rules = getattr(self.record, field)
        if rules is None:
            rules = []
        rules.append(
            ClassSpecificationRule(
                kind=kind,
                specification=specification,
                allow_shrinking=bool(allow_shrinking),
                allow_optimization=bool(allow_optimization),
                allow_obfuscation=bool(allow_obfuscation),
            )
        )
        self._set(field, rules)

    def _keep(
        self,
        kind: str,
        specification: Specification,
        allowshrinking: Optional[bool],
        allowoptimization: bool,
        allowobfuscation: bool,
        shrinking_default: bool,
    ) -> None:
        self._add_rule(
            "keep",
            kind,
            specification,
            allow_shrinking=shrinking_default if allowshrinking is None else allowshrinking,
            allow_optimization=allowoptimization,
            allow_obfuscation=allowobfuscation,
        )

    @directive
    def keep(
        self,
        specification: Specification,
        allowshrinking: Optional[bool] = None,
        allowoptimization: bool = False,
        allowobfuscation: bool = False,
    ) -> None:
        """Keep matching classes and class members."""
        self._keep("keep", specification, allowshrinking, allowoptimization, allowobfuscation, False)

    @directive
    def keepclassmembers(
        self,
        specification: Specification,
        allowshrinking: Optional[bool] = None,
        allowoptimization: bool = False,
        allowobfuscation: bool = False,
    ) -> None:
        self._keep(
            "keepclassmembers", specification, allowshrinking, allowoptimization, allowobfuscation, False
        )

    @directive
    def keepclasseswithmembers(
        self,
        specification: Specification,
        allowshrinking: Optional[bool] = None,
        allowoptimization: bool = False,
        allowobfuscation: bool = False,
    ) -> None:
        self._keep(
            "keepclasseswithmembers", specification, allowshrinking, allowoptimization, allowobfuscation, False
        )

    @directive
    def keepnames(
        self,
        specification: Specification,
        allowshrinking: Optional[bool] = None,
        allowoptimization: bool = False,
        allowobfuscation: bool = False,
    ) -> None:
        """Keep names of matching classes and members if they are not shrunk."""
        self._keep("keepnames", specification, allowshrinking, allowoptimization, allowobfuscation, True)

    @directive
    def keepclassmembernames(
        self,
        specification: Specification,
        allowshrinking: Optional[bool] = None,
        allowoptimization: bool = False,
        allowobfuscation: bool = False,
    ) -> None:
        self._keep(
            "keepclassmembernames", specification, allowshrinking, allowoptimization, allowobfuscation, True
        )

    @directive
    def keepclasseswithmembernames(
        self,
        specification: Specification,
        allowshrinking: Optional[bool] = None,
        allowoptimization: bool = False,
        allowobfuscation: bool = False,
    ) -> None:
        self._keep(
            "keepclasseswithmembernames", specification, allowshrinking, allowoptimization, allowobfuscation, True
        )

    @directive
    def keepcode(
        self,
        specification: Specification,
        allowshrinking: Optional[bool] = None,
        allowoptimization: bool = False,
        allowobfuscation: bool = False,
    ) -> None:
        """Keep the code attributes of matching methods unchanged."""
        self._keep("keepcode", specification, allowshrinking, allowoptimization, allowobfuscation, True)

    @directive
    def whyareyoukeeping(self, specification: Specification) -> None:
        self._add_rule("why_are_you_keeping", "whyareyoukeeping", specification)

    @directive
    def assumenosideeffects(self, specification: Specification) -> None:
        self._add_rule("assume_no_side_effects", "assumenosideeffects", specification)

    @directive
    def assumenoexternalsideeffects(self, specification: Specification) -> None:
        self._add_rule(
            "assume_no_external_side_effects", "assumenoexternalsideeffects", specification
        )

    @directive
    def assumenoescapingparameters(self, specification: Specification) -> None:
        self._add_rule(
            "assume_no_escaping_parameters", "assumenoescapingparameters", specification
        )

    @directive
    def assumenoexternalreturnvalues(self, specification: Specification) -> None:
        self._add_rule(
            "assume_no_external_return_values", "assumenoexternalreturnvalues", specification
        )

    @directive
    def assumevalues(self, specification: Specification) -> None:
        self._add_rule("assume_values", "assumevalues", specification)

    # Shrinking and optimization settings.

    @keyword
    def dontshrink(self) -> None:
        self._set("shrink", False)

    @keyword
    def dontoptimize(self) -> None:
        self._set("optimize", False)

    @directive
    def optimizations(self, filter: str) -> None:
        self._set("optimizations", extend_filter(self.record.optimizations, filter))

    @directive
    def optimizationpasses(self, passes: int) -> None:
        self._set("optimization_passes", int(passes))

    @keyword
    def allowaccessmodification(self) -> None:
        self._set("allow_access_modification", True)

    @keyword
    def mergeinterfacesaggressively(self) -> None:
        self._set("merge_interfaces_aggressively", True)

    # Obfuscation settings.

    @keyword
    def dontobfuscate(self) -> None:
        self._set("obfuscate", False)

    @directive
    def applymapping(self, file: PathLike) -> None:
        self._set("apply_mapping", self._path(file))

    @directive
    def obfuscationdictionary(self, file: PathLike) -> None:
        self._set("obfuscation_dictionary", self._path(file))

    @directive
    def classobfuscationdictionary(self, file: PathLike) -> None:
        self._set("class_obfuscation_dictionary", self._path(file))

    @directive
    def packageobfuscationdictionary(self, file: PathLike) -> None:
        self._set("package_obfuscation_dictionary", self._path(file))

    @keyword
    def overloadaggressively(self) -> None:
        self._set("overload_aggressively", True)

    @keyword
    def useuniqueclassmembernames(self) -> None:
        self._set("use_unique_class_member_names", True)

    @keyword
    def dontusemixedcaseclassnames(self) -> None:
        self._set("use_mixed_case_class_names", False)

    @keyword
    def keeppackagenames(self, filter: Optional[str] = None) -> None:
        self._set(
            "keep_package_names",
            extend_filter(self.record.keep_package_names, filter, internal=True),
        )

    @keyword
    def flattenpackagehierarchy(self, package: str = "") -> None:
        self._set("flatten_package_hierarchy", internal_class_name(package))

    @keyword
    def repackageclasses(self, package: str = "") -> None:
        self._set("repackage_classes", internal_class_name(package))

    @keyword
    def keepattributes(self, filter: Optional[str] = None) -> None:
        self._set("keep_attributes", extend_filter(self.record.keep_attributes, filter))

    @keyword
    def keepparameternames(self) -> None:
        self._set("keep_parameter_names", True)

    @keyword
    def renamesourcefileattribute(self, name: str = "") -> None:
        self._set("new_source_file_attribute", name)

    @keyword
    def adaptclassstrings(self, filter: Optional[str] = None) -> None:
        self._set(
            "adapt_class_strings",
            extend_filter(self.record.adapt_class_strings, filter, internal=True),
        )

    @keyword
    def adaptresourcefilenames(self, filter: Optional[str] = None) -> None:
        self._set(
            "adapt_resource_file_names",
            extend_filter(self.record.adapt_resource_file_names, filter),
        )

    @keyword
    def adaptresourcefilecontents(self, filter: Optional[str] = None) -> None:
        self._set(
            "adapt_resource_file_contents",
            extend_filter(self.record.adapt_resource_file_contents, filter),
        )

    # Preverification settings.

    @keyword
    def dontpreverify(self) -> None:
        self._set("preverify", False)

    @keyword
    def microedition(self) -> None:
        self._set("micro_edition", True)

    @keyword
    def android(self) -> None:
        self._set("android", True)

    # Signing settings.

    def _append(self, field: str, value: Any) -> None:
        values = getattr(self.record, field)
        if values is None:
            values = []
        values.append(value)
        self._set(field, values)

    @directive
    def keystore(self, file: PathLike) -> None:
        self._append("key_stores", self._path(file))

    @directive
    def keystorepassword(self, password: str) -> None:
        self._append("key_store_passwords", password)

    @directive
    def keyalias(self, alias: str) -> None:
        self._append("key_aliases", alias)

    @directive
    def keypassword(self, password: str) -> None:
        self._append("key_passwords", password)

    # General settings.

    @keyword
    def verbose(self) -> None:
        self._set("verbose", True)

    @keyword
    def dontnote(self, filter: Optional[str] = None) -> None:
        self._set("note", extend_filter(self.record.note, filter, internal=True))

    @keyword
    def dontwarn(self, filter: Optional[str] = None) -> None:
        self._set("warn", extend_filter(self.record.warn, filter, internal=True))

    @keyword
    def ignorewarnings(self) -> None:
        self._set("ignore_warnings", True)

    @keyword
    def addconfigurationdebugging(self) -> None:
        self._set("add_configuration_debugging", True)

    @keyword
    def keepkotlinmetadata(self) -> None:
        self._set("keep_kotlin_metadata", True)

    @directive
    def extrajar(self, file: PathLike) -> None:
        self._set("extra_jar", self._path(file))

    # Execution.

    def freeze(self) -> FrozenConfiguration:
        """Resolve the accumulated configuration into an immutable record."""
        logger.debug("Freezing configuration of task {}", self.name)
        return self.record.freeze(self.base_dir, self.properties)

    def execute(self, engine: Engine) -> FrozenConfiguration:
        """Hand the frozen configuration to the engine.

        Returns:
            The configuration the engine received.
        """
        frozen = self.freeze()
        engine.execute(frozen)
        return frozen

    def __repr__(self) -> str:
        return f"ShrinkTask({self.name!r})"
