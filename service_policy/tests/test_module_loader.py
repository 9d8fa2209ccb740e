"""
Unit tests for the policy module loader.
"""

import pytest

from shared.errors import CompileError, LoadError, ParseError
from service_policy.app.policy.loader import find_policy_files, load_modules


class TestModuleLoader:
    """Test cases for load_modules and find_policy_files."""

    def test_load_directory_recursively(self, tmp_path, write_policy, fake_backend):
        """Test that nested .rego files are found and parsed."""
        write_policy("policy/repo.rego", """
            package org.repo

            deny_missing_license {
                not input.license
            }
        """)
        write_policy("policy/nested/deep/org.rego", """
            package org.settings

            warn_no_description {
                input.description == ""
            }
        """)
        write_policy("policy/README.md", "# not a policy\n")

        modules = load_modules([tmp_path / "policy"], fake_backend)

        assert len(modules) == 2
        namespaces = sorted(m.namespace for m in modules.values())
        assert namespaces == ["org.repo", "org.settings"]
        assert all(name.endswith(".rego") for name in fake_backend.parsed)

    def test_load_explicit_files(self, write_policy, fake_backend):
        """Test loading files named directly."""
        policy = write_policy("a.rego", "package a\n\ndeny { true }\n")
        other = write_policy("notes.txt", "package b\n")

        modules = load_modules([policy, other], fake_backend)

        assert list(modules) == [str(policy)]

    def test_duplicate_paths_loaded_once(self, tmp_path, write_policy, fake_backend):
        """Test that overlapping paths do not load a file twice."""
        policy = write_policy("p/a.rego", "package a\n\ndeny { true }\n")

        modules = load_modules([tmp_path / "p", policy], fake_backend)

        assert len(modules) == 1

    def test_no_policies_found(self, tmp_path, write_policy, fake_backend):
        """Test that zero recognised files is a load error."""
        write_policy("docs/readme.md", "nothing here\n")

        with pytest.raises(LoadError) as exc_info:
            load_modules([tmp_path / "docs"], fake_backend)

        assert exc_info.value.code == "LOAD_ERROR"
        assert "no policies found" in exc_info.value.message
        assert exc_info.value.message.startswith("load:")

    def test_missing_path(self, tmp_path, fake_backend):
        """Test that a path that does not exist is a load error."""
        with pytest.raises(LoadError) as exc_info:
            load_modules([tmp_path / "missing"], fake_backend)

        assert "does not exist" in exc_info.value.message

    def test_syntax_error_is_fatal(self, tmp_path, write_policy, fake_backend):
        """Test that a module the backend rejects aborts loading with a compile error."""
        write_policy("p/good.rego", "package good\n\ndeny { true }\n")
        write_policy("p/zbad.rego", "deny { true }\n")

        with pytest.raises(CompileError) as exc_info:
            load_modules([tmp_path / "p"], fake_backend)

        assert exc_info.value.code == "COMPILE_ERROR"
        assert "zbad.rego: rego_parse_error" in exc_info.value.message

    def test_non_utf8_file_is_parse_error(self, tmp_path, write_policy, fake_backend):
        """Test that undecodable source aborts loading before the backend sees it."""
        write_policy("p/good.rego", "package good\n")
        bad = tmp_path / "p" / "latin1.rego"
        bad.write_bytes("package caf\xe9\n".encode("latin-1"))

        with pytest.raises(ParseError) as exc_info:
            load_modules([tmp_path / "p"], fake_backend)

        assert exc_info.value.code == "PARSE_ERROR"
        assert exc_info.value.filename.endswith("latin1.rego")
        assert exc_info.value.message.startswith("load: ")
        assert isinstance(exc_info.value, LoadError)
        assert all(not name.endswith("latin1.rego") for name in fake_backend.parsed)

    def test_files_sorted(self, tmp_path, write_policy):
        """Test that discovery order is deterministic."""
        write_policy("p/b.rego", "package b\n")
        write_policy("p/a.rego", "package a\n")
        write_policy("p/c/a.rego", "package c\n")

        files = find_policy_files([tmp_path / "p"])

        assert [f.relative_to(tmp_path).as_posix() for f in files] == [
            "p/a.rego", "p/b.rego", "p/c/a.rego"
        ]
