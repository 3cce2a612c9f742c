"""Tests for ProviderRegistry and build_registry."""

import pytest

from jobcraft.models.config import AIConfig, Capability, ProviderConfig, ProviderModels
from jobcraft.services.ai.providers import GroqProvider
from jobcraft.services.ai.registry import ProviderRegistry, build_registry


class TestProviderRegistry:
    """Tests for the ordered registry."""

    def test_preserves_insertion_order(self, make_provider) -> None:
        registry = ProviderRegistry(
            [make_provider("b"), make_provider("a"), make_provider("c")]
        )

        assert registry.keys() == ["b", "a", "c"]
        assert [a.name for a in registry] == ["b", "a", "c"]
        assert len(registry) == 3
        assert "a" in registry
        assert registry.get("missing") is None

    def test_rejects_duplicate_keys(self, make_provider) -> None:
        registry = ProviderRegistry([make_provider("groq")])

        with pytest.raises(ValueError, match="already registered"):
            registry.register(make_provider("groq"))

    def test_available_filters(self, make_provider) -> None:
        registry = ProviderRegistry(
            [make_provider("on"), make_provider("off", available=False)]
        )

        assert [a.name for a in registry.available()] == ["on"]

    def test_with_capability_uses_allow_list_order(self, make_provider) -> None:
        """The allow-list decides membership and order."""
        registry = ProviderRegistry(
            [
                make_provider("gemini", kind="embedding"),
                make_provider("cohere", kind="embedding"),
                make_provider("other", kind="embedding"),
                make_provider("groq"),
            ]
        )

        matched = registry.with_capability(
            Capability.EMBEDDING, allow=["cohere", "gemini", "groq", "absent"]
        )

        assert [a.name for a in matched] == ["cohere", "gemini"]

    def test_with_capability_without_allow_list(self, make_provider) -> None:
        registry = ProviderRegistry(
            [make_provider("a", kind="vision"), make_provider("b")]
        )

        matched = registry.with_capability(Capability.VISION)

        assert [a.name for a in matched] == ["a"]


class TestBuildRegistry:
    """Tests for build_registry."""

    def test_registers_enabled_credentialed_providers(self) -> None:
        config = AIConfig()
        config.providers["claude"].enabled = True
        config.providers["claude"].api_key = "sk-ant"
        config.providers["gemini"].api_key = "g-key"
        config.providers["huggingface"].api_key = "hf-key"

        registry = build_registry(config)

        # huggingface has a key but is disabled by default
        assert registry.keys() == ["claude", "gemini"]

    def test_passes_retry_budget(self) -> None:
        config = AIConfig()
        config.providers["groq"].api_key = "gsk"
        config.aggregation.max_retries = 5

        registry = build_registry(config)

        assert registry.get("groq").max_retries == 5

    def test_skips_unknown_provider(self) -> None:
        config = AIConfig(
            providers={
                "mystery": ProviderConfig(
                    enabled=True,
                    api_key="key",
                    base_url="https://mystery.example.com",
                    models=ProviderModels(text="m"),
                )
            }
        )

        assert len(build_registry(config)) == 0

    def test_skips_provider_that_fails_to_construct(self) -> None:
        """A construction error omits that provider only."""
        config = AIConfig()
        config.providers["groq"].api_key = "gsk"
        config.providers["together"].api_key = "tg"
        config.providers["together"].models = ProviderModels()

        registry = build_registry(config)

        assert registry.keys() == ["groq"]

    def test_custom_class_table(self) -> None:
        config = AIConfig()
        config.providers["groq"].api_key = "gsk"
        config.providers["cohere"].api_key = "co"

        registry = build_registry(config, provider_classes={"groq": GroqProvider})

        assert registry.keys() == ["groq"]

    def test_empty_when_nothing_configured(self) -> None:
        assert len(build_registry(AIConfig())) == 0
