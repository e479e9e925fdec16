"""Tests for knowledge-base loading, merging and compilation."""

import json
from pathlib import Path

import pytest

from llm_radar.core.categories import Category
from llm_radar.core.errors import ConfigurationError
from llm_radar.knowledge import (
    PATTERN_FIELDS,
    compile_config,
    default_config,
    load_and_compile,
    load_config,
    merge_override,
)


class TestDefaultKnowledgeBase:
    """Tests for the built-in knowledge base."""

    def test_default_free_models(self) -> None:
        """The opencode Zen free models are all FREE."""
        config = default_config()
        assert "opencode/big-pickle" in config.free_models
        assert "opencode/gpt-5-nano" in config.free_models
        assert all(info.category is Category.FREE for info in config.free_models.values())

    def test_default_free_tier_providers(self) -> None:
        """Cerebras, DeepSeek and Groq have documented free tiers."""
        config = default_config()
        assert set(config.free_tier_providers) == {"cerebras", "deepseek", "groq"}
        groq = config.free_tier_providers["groq"]
        assert groq.category is Category.FREE_LIMITED
        assert "30 RPM" in groq.limits

    def test_default_patterns_compile(self, kb) -> None:
        """All six default patterns compile and are case-insensitive."""
        assert kb.success_re.search("2, 3, 5")
        assert kb.success_re.search("2 3 5")
        assert kb.not_found_re.search("ModelNotFoundError")
        assert kb.auth_re.search("INVALID API KEY")
        assert kb.quota_re.search("Insufficient quota for this request")
        assert kb.rate_limit_re.search("429 Too Many Requests")
        assert kb.timeout_re.search("Deadline exceeded")

    def test_free_model_ids(self, kb) -> None:
        assert "opencode/big-pickle" in kb.free_model_ids
        assert "groq/llama" not in kb.free_model_ids

    def test_is_success_requires_exit_zero(self, kb) -> None:
        """A correct answer with a non-zero exit code is not a success."""
        assert kb.is_success(0, "2, 3, 5")
        assert not kb.is_success(1, "2, 3, 5")
        assert not kb.is_success(0, "I cannot help with that")


class TestMergeOverride:
    """Tests for merging a JSON override over the defaults."""

    def test_map_fields_merge_per_entry(self) -> None:
        """New free models are added, existing ones survive."""
        merged = merge_override(
            default_config(),
            {"free_models": {"custom/model": {"category": "FREE", "description": "Custom"}}},
        )
        assert "custom/model" in merged.free_models
        assert "opencode/big-pickle" in merged.free_models

    def test_map_entry_replaced_by_key(self) -> None:
        """An override entry with an existing key replaces that entry."""
        merged = merge_override(
            default_config(),
            {"free_tier_providers": {"groq": {"category": "PAID", "limits": "none"}}},
        )
        assert merged.free_tier_providers["groq"].category is Category.PAID
        assert "cerebras" in merged.free_tier_providers

    def test_pattern_field_replaced(self) -> None:
        merged = merge_override(default_config(), {"rate_limit_regex": "(?i)slow down"})
        assert merged.rate_limit_regex == "(?i)slow down"
        assert merged.auth_regex == default_config().auth_regex

    def test_invalid_category_raises_configuration_error(self) -> None:
        """A category outside the taxonomy is a configuration error."""
        with pytest.raises(ConfigurationError) as exc_info:
            merge_override(
                default_config(),
                {"free_models": {"x/y": {"category": "SOMETIMES_FREE"}}},
            )
        assert exc_info.value.field == "free_models"


class TestCompileConfig:
    """Tests for pattern compilation."""

    def test_invalid_regex_names_field(self) -> None:
        """A broken pattern fails with the offending field name."""
        config = merge_override(default_config(), {"quota_regex": "(unclosed"})
        with pytest.raises(ConfigurationError) as exc_info:
            compile_config(config)
        assert exc_info.value.field == "quota_regex"

    @pytest.mark.parametrize("field", PATTERN_FIELDS)
    def test_every_pattern_field_is_checked(self, field: str) -> None:
        config = merge_override(default_config(), {field: "[a-"})
        with pytest.raises(ConfigurationError) as exc_info:
            compile_config(config)
        assert exc_info.value.field == field


class TestLoadConfig:
    """Tests for loading the knowledge-base file."""

    def test_no_path_returns_defaults(self) -> None:
        assert load_config(None) == default_config()

    def test_missing_file_returns_defaults(self, tmp_path: Path) -> None:
        """A missing file is not an error."""
        assert load_config(tmp_path / "absent.json") == default_config()

    def test_loads_override_file(self, tmp_path: Path) -> None:
        path = tmp_path / "kb.json"
        path.write_text(json.dumps({
            "free_tier_providers": {"mistral": {"description": "Mistral", "limits": "1 RPS"}},
        }))
        kb = load_and_compile(path)
        provider = kb.get_free_tier_provider("mistral")
        assert provider is not None
        assert provider.category is Category.FREE_LIMITED
        assert provider.limits == "1 RPS"

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "kb.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_non_object_raises(self, tmp_path: Path) -> None:
        """The file must hold a JSON object, not a list."""
        path = tmp_path / "kb.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(ConfigurationError, match="JSON object"):
            load_config(path)
