import pytest

from grower_analytics.config import (
    DEFAULT_PRODUCTS,
    DEFAULT_YEARS,
    AnalysisConfig,
    load_config,
    parse_products,
    parse_years,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2022-2024", (2022, 2023, 2024)),
        (" 2025 ", (2025,)),
        ("2022,2024", (2022, 2024)),
        ("2022, 2023,", (2022, 2023)),
    ],
)
def test_parse_years(raw, expected):
    assert parse_years(raw) == expected


@pytest.mark.parametrize("raw", ["", "2024-2022", "twenty", "2022-abc"])
def test_parse_years_rejects_bad_input(raw):
    with pytest.raises(ValueError):
        parse_years(raw)


def test_parse_products_drops_blanks():
    assert parse_products(" Corn Seed, ,Hay ") == ("Corn Seed", "Hay")


def test_defaults_without_environment():
    cfg = load_config({})
    assert cfg.years == DEFAULT_YEARS
    assert cfg.products == DEFAULT_PRODUCTS
    assert cfg.default_target_year == 2027


def test_load_config_from_env_mapping():
    cfg = load_config(
        {"GROWER_ANALYTICS_YEARS": "2020-2021", "GROWER_ANALYTICS_PRODUCTS": "Hay,Straw"}
    )
    assert cfg.years == (2020, 2021)
    assert cfg.products == ("Hay", "Straw")


def test_load_config_reads_process_environment(monkeypatch):
    monkeypatch.setenv("GROWER_ANALYTICS_YEARS", "2019,2018")
    assert load_config().years == (2018, 2019)


def test_blank_product_list_keeps_defaults():
    assert load_config({"GROWER_ANALYTICS_PRODUCTS": " , "}).products == DEFAULT_PRODUCTS


def test_analysis_config_normalizes_years():
    cfg = AnalysisConfig(years=(2024, 2022, 2024, 2023))
    assert cfg.years == (2022, 2023, 2024)
    assert (cfg.first_year, cfg.last_year) == (2022, 2024)


def test_analysis_config_rejects_empty_window():
    with pytest.raises(ValueError):
        AnalysisConfig(years=())


def test_from_range():
    cfg = AnalysisConfig.from_range(2021, 2023, products=["Hay"])
    assert cfg.years == (2021, 2022, 2023)
    assert cfg.products == ("Hay",)
    with pytest.raises(ValueError):
        AnalysisConfig.from_range(2023, 2021)
