import importlib.util
from pathlib import Path

import pytest

CLI_PATH = Path(__file__).resolve().parents[1] / "cli.py"


@pytest.fixture(scope="module")
def cli():
    spec = importlib.util.spec_from_file_location("etevolve_cli", CLI_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_run_flags_become_optimizer_overrides(cli) -> None:
    args = cli.build_parser().parse_args(["run", "--iterations", "3", "--seed", "9", "--profile", "fast"])
    assert args.profile == "fast"
    assert cli._cli_overrides(args) == {"optimizer": {"iterations": 3, "seed": 9}}


def test_no_flags_means_no_overrides(cli) -> None:
    args = cli.build_parser().parse_args(["run"])
    assert cli._cli_overrides(args) == {}


def test_unknown_profile_is_rejected_by_the_parser(cli) -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["run", "--profile", "turbo"])


def test_describe_config_key(cli, capsys) -> None:
    cli.main(["describe-config", "--key", "crossover_rate"])
    assert "section=optimizer" in capsys.readouterr().out


def test_empty_invocation_prints_help(cli, capsys) -> None:
    cli.main([])
    assert "usage" in capsys.readouterr().out.lower()


def test_clear_cache_uses_configured_directory(cli, tmp_path: Path, capsys) -> None:
    cache_dir = tmp_path / "cache"
    cache_dir.mkdir()
    (cache_dir / "a.json").write_text("{}", encoding="utf-8")
    config = tmp_path / "run.yaml"
    config.write_text(f"cache:\n  directory: {cache_dir.as_posix()}\n", encoding="utf-8")

    cli.main(["clear-cache", "--config", str(config)])
    assert "Removed 1 cached input(s)" in capsys.readouterr().out
    assert not list(cache_dir.glob("*.json"))


def test_missing_config_file(cli, tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        cli.main(["clear-cache", "--config", str(tmp_path / "absent.yaml")])


def test_profiles_are_listed(cli, capsys) -> None:
    cli.main(["profiles"])
    output = capsys.readouterr().out.splitlines()
    assert [line.split(":")[0] for line in output] == ["fast", "balanced", "exhaustive"]
    assert "population=6" in output[0]
