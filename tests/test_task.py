"""Unit tests for the ShrinkTask class."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from guardconf.core.dsl import directives, keywords
from guardconf.core.entries import FilteredEntry
from guardconf.core.errors import EntryTypeError, SpecificationTypeError, UnknownFieldError
from guardconf.core.task import ShrinkTask
from guardconf.core.types import OUTPUT_FIELDS, STANDARD_STREAM, UNSET, OutputTarget

OUTPUT_KEYWORDS = {
    "dump": "dump",
    "print_configuration": "printconfiguration",
    "print_seeds": "printseeds",
    "print_mapping": "printmapping",
    "print_usage": "printusage",
}


class TestOutputTargets:
    """Test suite for report destinations."""

    @pytest.mark.parametrize("field", OUTPUT_FIELDS)
    def test_fresh_task_is_unset(self, task, field):
        """Test that every report starts unset."""
        assert task.output_target(field) is UNSET
        assert task.resolved_output_file(field) is None

    @pytest.mark.parametrize("field", OUTPUT_FIELDS)
    def test_standard_stream_is_idempotent(self, task, field):
        """Test repeated standard stream calls."""
        task.set_to_standard_stream(field)
        assert task.resolved_output_file(field) is None
        task.set_to_standard_stream(field)
        task.set_to_standard_stream(field)
        assert task.output_target(field) == STANDARD_STREAM
        assert task.resolved_output_file(field) is None

    @pytest.mark.parametrize("field", OUTPUT_FIELDS)
    def test_stream_overrides_file(self, task, field):
        """Test that standard stream replaces a file target."""
        task.set_to_file(field, "report.txt")
        task.set_to_standard_stream(field)
        assert task.resolved_output_file(field) is None

    @pytest.mark.parametrize("field", OUTPUT_FIELDS)
    def test_file_overrides_stream(self, task, tmp_path, field):
        """Test that a file target replaces standard stream."""
        task.set_to_standard_stream(field)
        task.set_to_file(field, "out/report.txt")
        assert task.resolved_output_file(field) == tmp_path / "out" / "report.txt"

    def test_file_then_stream_scenario(self, task):
        """Test that the state never reverts by itself."""
        task.set_to_file("print_mapping", "report/out.txt")
        first = task.resolved_output_file("print_mapping")
        task.set_to_standard_stream("print_mapping")
        second = task.resolved_output_file("print_mapping")
        third = task.resolved_output_file("print_mapping")
        assert first is not None and first.name == "out.txt"
        assert second is None
        assert third is None

    def test_path_handle_used_verbatim(self, task):
        """Test that Path instances are not re-anchored."""
        handle = Path("relative/seeds.txt")
        task.set_to_file("print_seeds", handle)
        assert task.resolved_output_file("print_seeds") is handle

    def test_string_substitutes_properties(self, task, tmp_path):
        """Test <name> references in report paths."""
        task.set_to_file("dump", "<flavor>/dump.txt")
        assert task.get_dump_file() == tmp_path / "release" / "dump.txt"

    def test_invalid_path_accepted(self, task, tmp_path):
        """Test that odd path strings are accepted without checks."""
        task.set_to_file("dump", "no\0such:dir/?.txt")
        assert task.get_dump_file() == tmp_path / "no\0such:dir/?.txt"

    def test_unknown_field(self, task):
        """Test that unknown field names are rejected."""
        with pytest.raises(UnknownFieldError):
            task.set_to_standard_stream("print_everything")

    @pytest.mark.parametrize("field,name", sorted(OUTPUT_KEYWORDS.items()))
    def test_keyword_forms(self, task, tmp_path, field, name):
        """Test the keyword methods with and without a file."""
        method = getattr(task, name)
        method()
        assert task.output_target(field) == STANDARD_STREAM
        method("report.txt")
        assert task.output_target(field) == OutputTarget.file(tmp_path / "report.txt")

    def test_file_accessors(self, task, tmp_path):
        """Test the get_*_file accessors."""
        task.printseeds("seeds.txt")
        task.printusage()
        task.printmapping("mapping.txt")
        assert task.get_print_seeds_file() == tmp_path / "seeds.txt"
        assert task.get_print_usage_file() is None
        assert task.get_print_mapping_file() == tmp_path / "mapping.txt"
        assert task.get_print_configuration_file() is None
        assert task.get_dump_file() is None

    def test_output_files(self, task, tmp_path):
        """Test that only file targets are reported as outputs."""
        task.printmapping("mapping.txt")
        task.printusage()
        task.dump("dump.txt")
        assert task.output_files() == {
            "dump": tmp_path / "dump.txt",
            "print_mapping": tmp_path / "mapping.txt",
        }


class TestClassPath:
    """Test suite for class path and configuration file entries."""

    def test_configuration_files_scenario(self, task):
        """Test mixed configuration file references."""
        handle = Path("rules/shared.pro")
        task.configuration("a.pro")
        task.configuration(handle)
        task.configuration("b.pro")
        files = task.get_configuration_files()
        assert len(files) == 3
        assert files[0] == "a.pro"
        assert files[1] is handle
        assert files[2] == "b.pro"

    def test_configuration_collection(self, task):
        """Test that collections are expanded."""
        task.configuration(["a.pro", "b.pro"])
        assert task.get_configuration_files() == ["a.pro", "b.pro"]

    def test_configuration_file_collection(self, task, tmp_path):
        """Test resolved configuration files."""
        task.configuration(["a.pro", Path("b.pro")])
        assert task.get_configuration_file_collection() == [
            tmp_path / "a.pro",
            tmp_path / "b.pro",
        ]

    def test_injars_aliased(self, task):
        """Test that the raw list is live."""
        task.injars("a.jar")
        files = task.get_in_jar_files()
        files.append("b.jar")
        assert task.get_in_jar_files() is files
        assert task.get_in_jar_files() == ["a.jar", "b.jar"]

    def test_injars_with_filter(self, task):
        """Test filtered input entries."""
        task.injars("a.jar")
        task.injars(["b.jar", "c.jar"], filter="!**.txt")
        assert task.get_in_jar_files() == [
            "a.jar",
            FilteredEntry("b.jar", "!**.txt"),
            FilteredEntry("c.jar", "!**.txt"),
        ]
        assert task.get_in_jar_filters() == [None, "!**.txt", "!**.txt"]

    def test_outjars_and_libraryjars(self, task, tmp_path):
        """Test output and library entries."""
        task.outjars("out.jar", filter={"jarfilter": "*.jar"})
        task.libraryjars(["<sdk>/android.jar", "lib/support.jar"])
        assert task.get_out_jar_filters() == [{"jarfilter": "*.jar"}]
        assert task.get_library_jar_filters() == [None, None]
        assert task.get_out_jar_file_collection() == [tmp_path / "out.jar"]
        assert task.get_library_jar_file_collection() == [
            Path("/opt/sdk/android.jar"),
            tmp_path / "lib" / "support.jar",
        ]

    def test_in_jar_file_collection(self, task, tmp_path):
        """Test resolved input entries."""
        task.injars(["a.jar", "a.jar"])
        assert task.get_in_jar_file_collection() == [tmp_path / "a.jar"] * 2

    def test_in_jar_counts(self, task):
        """Test that each outjars call records the inputs before it."""
        task.outjars("early.jar")
        task.injars(["a.jar", "b.jar"])
        task.outjars("first.jar")
        task.injars(["c.jar", "d.jar"])
        task.outjars(["second.jar", "second-extra.jar"])
        assert task.get_in_jar_counts() == [0, 2, 4]
        assert task.record.out_jar_batches == [1, 1, 2]

    def test_unsupported_entry(self, task):
        """Test that unsupported inputs fail fast."""
        with pytest.raises(EntryTypeError):
            task.injars(12)
        with pytest.raises(TypeError):
            task.configuration(3.5)

    def test_none_contributes_nothing(self, task):
        """Test that None inputs add nothing."""
        task.libraryjars(None)
        task.configuration(None)
        assert task.get_library_jar_files() == []
        assert task.get_configuration_files() == []


class TestFlags:
    """Test suite for boolean and scalar settings."""

    def test_defaults(self, task):
        """Test the defaults of a fresh record."""
        record = task.record
        assert record.shrink is True
        assert record.optimize is True
        assert record.obfuscate is True
        assert record.preverify is True
        assert record.use_mixed_case_class_names is True
        assert record.skip_non_public_library_class_members is True
        assert record.skip_non_public_library_classes is False
        assert record.ignore_warnings is False
        assert record.allow_access_modification is False
        assert record.keep_parameter_names is False
        assert record.optimization_passes == 1
        assert record.last_modified == 0
        assert record.target_class_version is None

    @pytest.mark.parametrize(
        "name,field,value",
        [
            ("skipnonpubliclibraryclasses", "skip_non_public_library_classes", True),
            ("dontskipnonpubliclibraryclassmembers", "skip_non_public_library_class_members", False),
            ("dontshrink", "shrink", False),
            ("dontoptimize", "optimize", False),
            ("allowaccessmodification", "allow_access_modification", True),
            ("mergeinterfacesaggressively", "merge_interfaces_aggressively", True),
            ("dontobfuscate", "obfuscate", False),
            ("overloadaggressively", "overload_aggressively", True),
            ("useuniqueclassmembernames", "use_unique_class_member_names", True),
            ("dontusemixedcaseclassnames", "use_mixed_case_class_names", False),
            ("keepparameternames", "keep_parameter_names", True),
            ("dontpreverify", "preverify", False),
            ("microedition", "micro_edition", True),
            ("android", "android", True),
            ("verbose", "verbose", True),
            ("ignorewarnings", "ignore_warnings", True),
            ("addconfigurationdebugging", "add_configuration_debugging", True),
            ("keepkotlinmetadata", "keep_kotlin_metadata", True),
        ],
    )
    def test_boolean_setters(self, task, name, field, value):
        """Test that each setter assigns its value and is not a toggle."""
        getattr(task, name)()
        assert getattr(task.record, field) is value
        getattr(task, name)()
        assert getattr(task.record, field) is value

    def test_flag_survives_unrelated_calls(self, task):
        """Test that setters don't touch other flags."""
        task.ignorewarnings()
        task.dontshrink()
        task.dontoptimize()
        task.verbose()
        task.allowaccessmodification()
        task.dontwarn()
        task.printmapping()
        task.injars("a.jar")
        assert task.record.ignore_warnings is True
        assert task.record.obfuscate is True

    def test_forceprocessing(self, task):
        """Test that forced processing sets the maximum timestamp."""
        task.forceprocessing()
        assert task.record.last_modified == sys.maxsize

    def test_target(self, task):
        """Test the target class version."""
        task.target("1.8")
        assert task.record.target_class_version == "1.8"
        task.target(11)
        assert task.record.target_class_version == "11"

    def test_optimizationpasses(self, task):
        """Test the optimization pass count."""
        task.optimizationpasses(5)
        assert task.record.optimization_passes == 5

    def test_package_names_internal(self, task):
        """Test package settings in internal form."""
        task.flattenpackagehierarchy()
        assert task.record.flatten_package_hierarchy == ""
        task.repackageclasses("com.example.internal")
        assert task.record.repackage_classes == "com/example/internal"

    def test_renamesourcefileattribute(self, task):
        """Test the source file attribute setting."""
        task.renamesourcefileattribute()
        assert task.record.new_source_file_attribute == ""
        task.renamesourcefileattribute("SourceFile")
        assert task.record.new_source_file_attribute == "SourceFile"

    def test_path_settings(self, task, tmp_path):
        """Test mapping and dictionary files."""
        task.applymapping("old/mapping.txt")
        task.obfuscationdictionary("dict.txt")
        task.classobfuscationdictionary(Path("/abs/classes.txt"))
        task.packageobfuscationdictionary("packages.txt")
        task.extrajar("extra.jar")
        assert task.record.apply_mapping == tmp_path / "old" / "mapping.txt"
        assert task.record.obfuscation_dictionary == tmp_path / "dict.txt"
        assert task.record.class_obfuscation_dictionary == Path("/abs/classes.txt")
        assert task.record.package_obfuscation_dictionary == tmp_path / "packages.txt"
        assert task.record.extra_jar == tmp_path / "extra.jar"

    def test_signing(self, task, tmp_path):
        """Test that signing settings accumulate."""
        assert task.record.key_stores is None
        task.keystore("release.jks")
        task.keystore("debug.jks")
        task.keystorepassword("secret")
        task.keyalias("release")
        task.keypassword("secret2")
        assert task.record.key_stores == [tmp_path / "release.jks", tmp_path / "debug.jks"]
        assert task.record.key_store_passwords == ["secret"]
        assert task.record.key_aliases == ["release"]
        assert task.record.key_passwords == ["secret2"]


FILTER_SETTINGS = [
    ("keepdirectories", "keep_directories", False),
    ("keeppackagenames", "keep_package_names", True),
    ("keepattributes", "keep_attributes", False),
    ("adaptclassstrings", "adapt_class_strings", True),
    ("adaptresourcefilenames", "adapt_resource_file_names", False),
    ("adaptresourcefilecontents", "adapt_resource_file_contents", False),
    ("dontnote", "note", True),
    ("dontwarn", "warn", True),
]


class TestFilterSettings:
    """Test suite for filter-list settings."""

    @pytest.mark.parametrize("name,field,internal", FILTER_SETTINGS)
    def test_starts_unset(self, task, name, field, internal):
        """Test that filter settings start as None, not empty."""
        assert getattr(task.record, field) is None

    @pytest.mark.parametrize("name,field,internal", FILTER_SETTINGS)
    def test_no_argument_initializes_once(self, task, name, field, internal):
        """Test the first touch and repeated touches without a pattern."""
        getattr(task, name)()
        initialized = getattr(task.record, field)
        assert initialized == []
        getattr(task, name)()
        assert getattr(task.record, field) is initialized
        assert len(initialized) == 0

    @pytest.mark.parametrize("name,field,internal", FILTER_SETTINGS)
    def test_patterns_append(self, task, name, field, internal):
        """Test that patterns accumulate in order."""
        getattr(task, name)("com.example.**,Signature")
        getattr(task, name)()
        getattr(task, name)("org.Other")
        expected = (
            ["com/example/**", "Signature", "org/Other"]
            if internal
            else ["com.example.**", "Signature", "org.Other"]
        )
        assert getattr(task.record, field) == expected

    def test_optimizations(self, task):
        """Test the optimizations filter."""
        task.optimizations("!code/simplification/arithmetic,field/*")
        assert task.record.optimizations == ["!code/simplification/arithmetic", "field/*"]


class TestRules:
    """Test suite for keep and assume rules."""

    def test_keep_starts_unset(self, task):
        """Test that the keep list starts as None."""
        assert task.record.keep is None

    def test_keep_accumulates(self, task):
        """Test that keep rules accumulate in order."""
        task.keep("class com.example.Main")
        task.keep("class * extends android.app.Activity", allowobfuscation=True)
        rules = task.record.keep
        assert [r.specification for r in rules] == [
            "class com.example.Main",
            "class * extends android.app.Activity",
        ]
        assert rules[0].allow_obfuscation is False
        assert rules[1].allow_obfuscation is True

    @pytest.mark.parametrize(
        "name,shrinking",
        [
            ("keep", False),
            ("keepclassmembers", False),
            ("keepclasseswithmembers", False),
            ("keepnames", True),
            ("keepclassmembernames", True),
            ("keepclasseswithmembernames", True),
            ("keepcode", True),
        ],
    )
    def test_keep_kinds(self, task, name, shrinking):
        """Test rule kinds and the allow-shrinking default."""
        getattr(task, name)({"name": "com.example.*", "access": "public"})
        rule = task.record.keep[0]
        assert rule.kind == name
        assert rule.allow_shrinking is shrinking
        assert rule.specification == {"name": "com.example.*", "access": "public"}

    def test_keep_allowshrinking_override(self, task):
        """Test overriding the allow-shrinking default."""
        task.keepnames("class Foo", allowshrinking=False)
        assert task.record.keep[0].allow_shrinking is False

    @pytest.mark.parametrize(
        "name,field",
        [
            ("whyareyoukeeping", "why_are_you_keeping"),
            ("assumenosideeffects", "assume_no_side_effects"),
            ("assumenoexternalsideeffects", "assume_no_external_side_effects"),
            ("assumenoescapingparameters", "assume_no_escaping_parameters"),
            ("assumenoexternalreturnvalues", "assume_no_external_return_values"),
            ("assumevalues", "assume_values"),
        ],
    )
    def test_other_rules(self, task, name, field):
        """Test rule lists other than keep."""
        assert getattr(task.record, field) is None
        getattr(task, name)("class android.util.Log { public static int d(...); }")
        rules = getattr(task.record, field)
        assert len(rules) == 1
        assert rules[0].kind == name
        assert task.record.keep is None

    def test_mapping_specification_copied(self, task):
        """Test that a frozen rule keeps the specification it was given."""
        spec = {"name": "com.example.Main", "fields": ["int count"]}
        task.keep(spec)
        frozen = task.freeze()
        spec["name"] = "changed"
        spec["fields"].append("long total")
        assert frozen.keep[0].specification == {
            "name": "com.example.Main",
            "fields": ["int count"],
        }
        assert task.record.keep[0].specification["name"] == "com.example.Main"
        with pytest.raises(TypeError):
            frozen.keep[0].specification["name"] = "other"  # type: ignore[index]

    def test_invalid_specification(self, task):
        """Test that unsupported specifications fail fast."""
        with pytest.raises(SpecificationTypeError):
            task.keep(42)  # type: ignore[arg-type]


class TestDslFacade:
    """Test suite for the dsl_ aliases."""

    def test_every_keyword_has_alias(self):
        """Test that aliases exist for all keywords."""
        names = keywords(ShrinkTask)
        assert "dontshrink" in names
        assert "printmapping" in names
        assert "dontwarn" in names
        for name in names:
            assert callable(getattr(ShrinkTask, f"dsl_{name}"))

    def test_keywords_are_directives(self):
        """Test that keywords are a subset of directives."""
        assert set(keywords(ShrinkTask)) <= set(directives(ShrinkTask))
        assert "injars" in directives(ShrinkTask)
        assert "injars" not in keywords(ShrinkTask)
        assert "freeze" not in directives(ShrinkTask)

    @pytest.mark.parametrize("name", keywords(ShrinkTask))
    def test_alias_matches_direct_call(self, project, name):
        """Test that the alias returns None and mutates like the keyword."""
        fresh = project.create_task("fresh")
        direct = project.create_task("direct")
        aliased = project.create_task("aliased")

        getattr(direct, name)()
        assert getattr(aliased, f"dsl_{name}")() is None

        assert aliased.freeze() == direct.freeze()
        assert aliased.freeze() != fresh.freeze()


class TestExecute:
    """Test suite for handing the record to an engine."""

    def test_execute(self, task, engine, tmp_path):
        """Test that the engine receives the frozen record."""
        task.injars("in.jar")
        task.outjars("out.jar")
        frozen = task.execute(engine)
        assert engine.received == [frozen]
        assert [e.path for e in frozen.program_jars] == [tmp_path / "in.jar", tmp_path / "out.jar"]

    def test_frozen_record_is_hashable(self, task):
        """Test hashing a record with filters and mapping rules."""
        task.injars("in.jar", filter={"jarfilter": "!**.txt"})
        task.keep({"name": "com.example.Main"})
        task.printmapping()
        assert hash(task.freeze()) == hash(task.freeze())
        assert task.freeze() == task.freeze()

    def test_tasks_are_independent(self, project):
        """Test that two tasks share no state."""
        first = project.create_task("first")
        second = project.create_task("second")
        first.dontshrink()
        first.injars("a.jar")
        first.dontwarn()
        assert second.record.shrink is True
        assert second.get_in_jar_files() == []
        assert second.record.warn is None
