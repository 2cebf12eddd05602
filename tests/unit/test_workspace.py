"""
Unit tests for workspace resolution and lifecycle.
"""

import json
from datetime import date

import pytest

from tandem.exceptions import (
    AlreadyExistsError,
    InvalidLanguageError,
    NotBootstrappedError,
    NotFoundError,
)
from tandem.languages import DEFAULT_PROFILE, get_language_profile
from tandem.templates import (
    CONFIG_FILE,
    GRAMMAR_FILE,
    INSTRUCTIONS_FILE,
    OVERRIDES_FILE,
    VOCABULARY_FILE,
)
from tandem.workspace import capitalize_first, resolve, validate_language_name

ARTIFACTS = [INSTRUCTIONS_FILE, VOCABULARY_FILE, GRAMMAR_FILE, OVERRIDES_FILE, CONFIG_FILE]


class TestValidation:
    """Tests for language name validation."""

    @pytest.mark.parametrize("name", ["Korean", "korean", "Old Norse", "Ancient-Greek", "Esperanto2"])
    def test_accepts_safe_names(self, name):
        validate_language_name(name)

    @pytest.mark.parametrize(
        "name",
        ["", "   ", "..", "../etc", "a/b", "a\\b", "Français", "korean!", "日本語", "x_y", "korean\n", "Korean\t"],
    )
    def test_rejects_unsafe_names(self, name):
        with pytest.raises(InvalidLanguageError):
            validate_language_name(name)

    def test_error_names_the_rule(self):
        with pytest.raises(InvalidLanguageError, match="letters, numbers, spaces, and hyphens"):
            validate_language_name("korean!")

        with pytest.raises(InvalidLanguageError, match="empty"):
            validate_language_name("")

    @pytest.mark.parametrize("name", ["../escape", "Korean\n"])
    def test_invalid_name_touches_nothing(self, workspaces, name):
        with pytest.raises(InvalidLanguageError):
            workspaces.bootstrap(name)

        assert not workspaces.data_dir.exists()

    def test_trailing_newline_not_bootstrapped_beside_valid(self, workspaces):
        workspaces.bootstrap("Korean")

        with pytest.raises(InvalidLanguageError):
            workspaces.bootstrap("Korean\n")

        assert [entry.name for entry in workspaces.data_dir.iterdir()] == ["korean"]


class TestResolve:
    """Tests for the language -> directory mapping."""

    @pytest.mark.parametrize("name", ["Korean", "KOREAN", "kOrEaN", "Old Norse"])
    def test_case_insensitive(self, tmp_path, name):
        assert resolve(name, tmp_path).path == resolve(name.lower(), tmp_path).path

    def test_directory_is_lowercased_name(self, tmp_path):
        workspace = resolve("Old Norse", tmp_path)

        assert workspace.path == tmp_path / "old norse"
        assert workspace.language == "Old Norse"
        assert workspace.tracker_dir == tmp_path / "old norse" / ".tracker"

    def test_exists_false_before_bootstrap(self, tmp_path):
        assert resolve("Korean", tmp_path).exists() is False

    def test_capitalize_first(self):
        assert capitalize_first("korean") == "Korean"
        assert capitalize_first("old norse") == "Old norse"
        assert capitalize_first("") == ""


class TestBootstrap:
    """Tests for workspace creation."""

    def test_writes_all_artifacts(self, korean):
        assert korean.exists()
        for name in ARTIFACTS:
            assert korean.file(name).is_file(), name

    def test_config_record(self, korean):
        config = json.loads(korean.file(CONFIG_FILE).read_text(encoding="utf-8"))

        assert config == {
            "language": "Korean",
            "native_script": "한글",
            "romanization": "none",
            "started": "2025-03-01",
        }

    def test_instructions_filled_from_profile(self, korean):
        text = korean.file(INSTRUCTIONS_FILE).read_text(encoding="utf-8")

        assert "# Korean Language Tutor" in text
        assert "Korean-Specific Considerations" in text
        assert "한글" in text
        assert "{{" not in text

    def test_unknown_language_uses_default_profile(self, workspaces):
        workspace = workspaces.bootstrap("Klingon", today=date(2025, 1, 2))
        config = json.loads(workspace.file(CONFIG_FILE).read_text(encoding="utf-8"))

        assert config["native_script"] == DEFAULT_PROFILE.native_script
        assert config["romanization"] == "none"
        assert "Language-Specific Considerations" in workspace.file(INSTRUCTIONS_FILE).read_text(
            encoding="utf-8"
        )

    def test_overrides_defaults(self, korean):
        overrides = json.loads(korean.file(OVERRIDES_FILE).read_text(encoding="utf-8"))

        assert overrides["mode"] == "learning"
        assert overrides["preferences"] == {"new_vocab_per_exchange": 2, "show_romanization": True}

    def test_second_bootstrap_fails_and_keeps_files(self, workspaces, korean):
        before = {name: korean.file(name).read_text(encoding="utf-8") for name in ARTIFACTS}

        with pytest.raises(AlreadyExistsError, match="already exists"):
            workspaces.bootstrap("KOREAN")

        after = {name: korean.file(name).read_text(encoding="utf-8") for name in ARTIFACTS}
        assert after == before

    def test_mandarin_aliases_chinese(self):
        assert get_language_profile("Mandarin") == get_language_profile("chinese")
        assert get_language_profile("Mandarin").romanization == "pinyin"


class TestDelete:
    """Tests for workspace removal."""

    def test_delete_missing_raises(self, workspaces):
        with pytest.raises(NotFoundError, match="does not exist"):
            workspaces.delete("Korean")

    def test_delete_removes_subtree(self, workspaces, korean):
        korean.tracker_dir.mkdir()
        (korean.tracker_dir / "scratch.txt").write_text("x", encoding="utf-8")

        workspaces.delete("korean")

        assert not korean.path.exists()
        assert workspaces.resolve("Korean").exists() is False


class TestReadOperations:
    """Tests for listing and raw store reads."""

    def test_list_languages_absent_root(self, workspaces):
        assert workspaces.list_languages() == []

    def test_list_languages_empty_root(self, workspaces):
        workspaces.data_dir.mkdir(parents=True)
        assert workspaces.list_languages() == []

    def test_list_languages_display_names(self, workspaces):
        workspaces.bootstrap("Korean")
        workspaces.bootstrap("Old Norse")
        (workspaces.data_dir / "stray.txt").write_text("", encoding="utf-8")

        assert workspaces.list_languages() == ["Korean", "Old norse"]

    def test_vocabulary_round_trip(self, workspaces, korean):
        assert workspaces.get_vocabulary("Korean") == '{\n  "language": "Korean",\n  "words": []\n}'

    def test_grammar_round_trip(self, workspaces, korean):
        assert workspaces.get_grammar("korean") == '{\n  "language": "Korean",\n  "rules": []\n}'

    def test_reads_require_bootstrap(self, workspaces):
        with pytest.raises(NotBootstrappedError, match="bootstrap it first"):
            workspaces.get_vocabulary("Korean")

    def test_get_config(self, workspaces, korean):
        config = workspaces.get_config("Korean")

        assert config.started == date(2025, 3, 1)
        assert config.native_script == "한글"
