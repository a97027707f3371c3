from pathlib import Path

import pytest

from erp_finsight.config import load_app_config

REPO_ROOT = Path(__file__).resolve().parents[1]


def _write_config(tmp_path, body: str) -> Path:
    path = tmp_path / "erp_finsight_config.toml"
    path.write_text(body, encoding="utf-8")
    return path


def test_repository_config_file_loads():
    """The configuration shipped with the repository is valid."""
    config = load_app_config(str(REPO_ROOT / "erp_finsight_config.toml"))

    assert config.data_source == "csv"
    assert config.csv_dir == (REPO_ROOT / "data" / "sample").resolve()
    assert config.costing.proration_days == 30
    assert config.costing.allocation_method == "unit"
    assert "rent" not in config.costing.variable_expense_types


def test_defaults_for_an_empty_file(tmp_path):
    config = load_app_config(str(_write_config(tmp_path, "")))

    assert config.currency == "USD"
    assert config.data_source == "csv"
    assert config.display_mode == "table"
    assert config.decimals == 2
    assert config.log_level == "WARNING"
    assert config.database.engine == "sqlite"
    # Paths are resolved relative to the TOML file.
    assert config.database.path == (tmp_path / "data/db/erp_finsight.sqlite").resolve()
    assert config.csv_dir == (tmp_path / "data/sample").resolve()


def test_costing_section(tmp_path):
    path = _write_config(
        tmp_path,
        """
        [costing]
        proration_days = 28
        variable_expense_types = ["Utilities", "rent"]
        allocation_method = "Revenue"
        """,
    )
    rules = load_app_config(str(path)).costing
    assert rules.proration_days == 28
    assert rules.variable_expense_types == ("utilities", "rent")
    assert rules.allocation_method == "revenue"


@pytest.mark.parametrize(
    "body",
    [
        '[data]\nsource = "excel"\n',
        '[display]\nmode = "html"\n',
        '[costing]\nallocation_method = "headcount"\n',
        '[costing]\nproration_days = "thirty"\n',
        "[costing]\nproration_days = 0\n",
        '[costing]\nvariable_expense_types = "utilities"\n',
        '[logging]\nlevel = "CHATTY"\n',
    ],
)
def test_invalid_values_raise(tmp_path, body):
    with pytest.raises(ValueError):
        load_app_config(str(_write_config(tmp_path, body)))


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_app_config(str(tmp_path / "missing.toml"))


def test_invalid_toml(tmp_path):
    with pytest.raises(ValueError, match="Failed to parse TOML"):
        load_app_config(str(_write_config(tmp_path, "[costing\n")))
