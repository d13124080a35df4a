from seql.config import DEFAULTS, SeqlConfig, load_config
from seql.options import CodecOptions, GeneratorOptions, ResolverOptions


def _clear_env(monkeypatch):
    for key in DEFAULTS:
        monkeypatch.delenv(f"SEQL_{key.upper()}", raising=False)


def test_defaults_without_file(monkeypatch, tmp_path):
    _clear_env(monkeypatch)
    config = load_config(tmp_path / "missing.toml")
    assert config == SeqlConfig()
    assert config.max_path_depth == 10
    assert config.confidence_threshold == 0.1


def test_toml_table_and_environment_override(monkeypatch, tmp_path):
    _clear_env(monkeypatch)
    path = tmp_path / "seql.toml"
    path.write_text('[seql]\nmax_path_depth = 4\nstrict_mode = true\nsource_tag = "crawler"\n', encoding="utf-8")
    monkeypatch.setenv("SEQL_MAX_PATH_DEPTH", "6")
    monkeypatch.setenv("SEQL_ENABLE_FALLBACK", "off")

    config = load_config(path)

    assert config.max_path_depth == 6
    assert config.strict_mode is True
    assert config.enable_fallback is False
    assert config.source_tag == "crawler"


def test_unknown_keys_are_ignored():
    config = SeqlConfig.from_mapping({"max_candidates": "5", "colour": "blue"})
    assert config.max_candidates == 5
    assert not hasattr(config, "colour")


def test_options_from_config():
    config = SeqlConfig.from_mapping({"max_path_depth": 3, "max_candidates": 7, "max_classes": 2, "strict_mode": "yes"})
    assert GeneratorOptions.from_config(config).max_path_depth == 3
    resolver = ResolverOptions.from_config(config)
    assert resolver.max_candidates == 7
    assert resolver.strict_mode is True
    assert CodecOptions.from_config(config).max_classes == 2
