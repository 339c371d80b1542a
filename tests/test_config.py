from decimal import Decimal

import pytest

from statement_import.config import DEFAULT_MAX_AMOUNT, ParserConfig


def test_from_env_defaults():
    cfg = ParserConfig.from_env({})
    assert cfg.openai_api_key is None
    assert not cfg.ai_available
    assert cfg.model == "gpt-5"
    assert cfg.ai_timeout_sec == 30.0
    assert cfg.max_amount == DEFAULT_MAX_AMOUNT
    assert cfg.concurrency == 4


def test_from_env_reads_overrides():
    cfg = ParserConfig.from_env(
        {
            "OPENAI_API_KEY": " sk-abc ",
            "OPENAI_BASE_URL": "https://router.example/v1",
            "STATEMENT_IMPORT_MODEL": "gpt-5-mini",
            "STATEMENT_IMPORT_AI_TIMEOUT": "2.5",
            "STATEMENT_IMPORT_MAX_AMOUNT": "1000000",
            "STATEMENT_IMPORT_CONCURRENCY": "8",
        }
    )
    assert cfg.openai_api_key == "sk-abc"
    assert cfg.ai_available
    assert cfg.openai_base_url == "https://router.example/v1"
    assert cfg.model == "gpt-5-mini"
    assert cfg.ai_timeout_sec == 2.5
    assert cfg.max_amount == Decimal("1000000")
    assert cfg.concurrency == 8


def test_blank_key_disables_ai():
    assert not ParserConfig.from_env({"OPENAI_API_KEY": "   "}).ai_available


def test_key_is_not_in_repr():
    assert "sk-secret" not in repr(ParserConfig(openai_api_key="sk-secret"))


@pytest.mark.parametrize(
    "env",
    [
        {"STATEMENT_IMPORT_AI_TIMEOUT": "soon"},
        {"STATEMENT_IMPORT_AI_TIMEOUT": "0"},
        {"STATEMENT_IMPORT_MAX_AMOUNT": "-5"},
        {"STATEMENT_IMPORT_MAX_AMOUNT": "NaN"},
        {"STATEMENT_IMPORT_CONCURRENCY": "1.5"},
        {"STATEMENT_IMPORT_CONCURRENCY": "0"},
    ],
)
def test_invalid_env_values_raise(env: dict[str, str]):
    with pytest.raises(ValueError):
        ParserConfig.from_env(env)


def test_direct_construction_validates():
    with pytest.raises(ValueError):
        ParserConfig(concurrency=0)
    with pytest.raises(ValueError):
        ParserConfig(ai_timeout_sec=-1)
