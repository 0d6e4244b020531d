"""Unit tests for Settings and the YAML config loader."""

from __future__ import annotations

from pathlib import Path

from contentvec.config.loader import content_type_map, load_config
from contentvec.config.settings import Settings


def _settings(**overrides) -> Settings:
    defaults = {"_env_file": None}
    defaults.update(overrides)
    return Settings(**defaults)


class TestSettings:
    def test_defaults(self) -> None:
        settings = _settings()
        assert settings.embedding_provider == "openai"
        assert settings.default_embedding_dimension == 1536
        assert settings.default_distance_metric == "cosine"

    def test_env_override(self, monkeypatch) -> None:
        monkeypatch.setenv("EMBEDDING_PROVIDER", "ollama")
        monkeypatch.setenv("INDEXING_CONCURRENCY", "8")
        settings = _settings()
        assert settings.embedding_provider == "ollama"
        assert settings.indexing_concurrency == 8


class TestLoadConfig:
    def test_yaml_merged_with_settings(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "content_types:\n"
            "  Exam Question: api::exam-question.exam-question\n"
            "indexing:\n"
            "  concurrency: 2\n"
            "  batch_note: kept\n"
        )

        config = load_config(str(config_file), settings=_settings(indexing_concurrency=6))

        assert config["indexing"] == {"concurrency": 6, "batch_note": "kept"}
        assert config["content_types"]["Exam Question"] == "api::exam-question.exam-question"
        assert config["embedding"]["provider"] == "openai"

    def test_missing_file_gives_env_only_config(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=_settings())
        assert config["content_types"] == {}
        assert config["app"]["port"] == 8000

    def test_empty_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")
        assert load_config(str(config_file), settings=_settings())["content_types"] == {}

    def test_path_defaults_to_settings_config_path(self, tmp_path: Path) -> None:
        config_file = tmp_path / "custom.yaml"
        config_file.write_text("content_types:\n  article: api::article.article\n")

        config = load_config(settings=_settings(config_path=str(config_file)))

        assert config["content_types"] == {"article": "api::article.article"}


class TestContentTypeMap:
    def test_values_stringified(self) -> None:
        assert content_type_map({"content_types": {"Exam Question": "api::exam-question.exam-question"}}) == {
            "Exam Question": "api::exam-question.exam-question"
        }

    def test_missing_or_null_table(self) -> None:
        assert content_type_map({}) == {}
        assert content_type_map({"content_types": None}) == {}
