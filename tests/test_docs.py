import importlib.util
from pathlib import Path

import pytest

DOCS_SCRIPT = Path(__file__).resolve().parents[1] / "docs" / "generate_docs.py"


@pytest.fixture(scope="module")
def docs():
    spec = importlib.util.spec_from_file_location("etevolve_docs", DOCS_SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_schema_is_not_listed_as_an_example(docs) -> None:
    names = [path.name for path in docs.example_configs()]
    assert "etlight.yaml" in names
    assert "config_default.yaml" not in names


def test_example_page_shows_resolved_configs(docs, tmp_path: Path) -> None:
    page = docs.build_example_page(tmp_path).read_text(encoding="utf-8")
    assert "## etlight" in page
    assert "Maximises `etflex_score` over 5 inputs with 1 fixed value(s)." in page
    # schema defaults are filled in
    assert "max_selection_scans: 100" in page


def test_config_reference_is_written_to_the_output_dir(docs, tmp_path: Path) -> None:
    target = docs.build_config_reference(tmp_path / "out")
    assert target == tmp_path / "out" / "config_reference.md"
    assert "`insufficient_valid`" in target.read_text(encoding="utf-8")
