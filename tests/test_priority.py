"""Tests for dispatch ordering."""

from llm_radar.orchestration.priority import prioritize_models


class TestPrioritizeModels:
    """Stable three-bucket partition."""

    def test_order_free_then_discount_then_rest(self) -> None:
        models = [
            "anthropic/claude",
            "zai-coding-plan/glm-4.6",
            "opencode/big-pickle",
            "groq/llama",
            "zai-coding-plan/glm-4.5",
            "opencode/gpt-5-nano",
        ]
        free = {"opencode/big-pickle", "opencode/gpt-5-nano"}

        assert prioritize_models(models, free) == [
            "opencode/big-pickle",
            "opencode/gpt-5-nano",
            "zai-coding-plan/glm-4.6",
            "zai-coding-plan/glm-4.5",
            "anthropic/claude",
            "groq/llama",
        ]

    def test_is_permutation(self) -> None:
        models = ["b/1", "a/2", "zai-coding-plan/x", "c/3"]
        result = prioritize_models(models, {"c/3"})
        assert sorted(result) == sorted(models)
        assert len(result) == len(models)

    def test_known_free_wins_over_prefix(self) -> None:
        """A free model with the discount prefix goes in the free bucket."""
        result = prioritize_models(["a/1", "zai-coding-plan/free"], {"zai-coding-plan/free"})
        assert result == ["zai-coding-plan/free", "a/1"]

    def test_custom_prefix(self) -> None:
        assert prioritize_models(["a/1", "b/2"], set(), discount_prefix="b/") == ["b/2", "a/1"]

    def test_empty(self) -> None:
        assert prioritize_models([], set()) == []
