"""
Regenerate the ETEvolve documentation pages.

Usage:
    python docs/generate_docs.py [output-dir]

Writes the configuration reference, a page listing every packaged example
run configuration as the loader resolves it (schema defaults filled in), and
the pdoc API docs under ``<output-dir>/site``.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import List, Optional

from omegaconf import OmegaConf

from etevolve.utils.config_loader import ConfigLoader
from etevolve.utils.config_reference import SCHEMA_PATH, write_markdown

DOCS_DIR = Path(__file__).resolve().parent
EXAMPLES_DIR = SCHEMA_PATH.parent


def example_configs() -> List[Path]:
    """Packaged run configurations, the schema file excluded."""
    return sorted(path for path in EXAMPLES_DIR.glob("*.yaml") if path != SCHEMA_PATH)


def build_config_reference(output_dir: Path = DOCS_DIR) -> Path:
    return write_markdown(output_dir / "config_reference.md")


def build_example_page(output_dir: Path = DOCS_DIR) -> Path:
    loader = ConfigLoader()
    lines = ["# Example run configurations", ""]
    for path in example_configs():
        resolved = loader.load(path)
        objective = resolved["objective"]
        lines.append(f"## {path.stem}")
        lines.append("")
        lines.append(
            f"Maximises `{objective['fitness']}` over {len(objective['inputs'])} inputs "
            f"with {len(objective['fixed'])} fixed value(s)."
        )
        lines.append("")
        lines.append("```yaml")
        lines.append(OmegaConf.to_yaml(resolved.data).rstrip())
        lines.append("```")
        lines.append("")
    target = output_dir / "examples.md"
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text("\n".join(lines), encoding="utf-8")
    return target


def build_api_docs(output_dir: Path = DOCS_DIR) -> None:
    site_dir = output_dir / "site"
    site_dir.mkdir(parents=True, exist_ok=True)
    subprocess.run(
        [sys.executable, "-m", "pdoc", "etevolve", "--output-dir", str(site_dir)],
        check=True,
    )


def main(argv: Optional[List[str]] = None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    output_dir = Path(argv[0]) if argv else DOCS_DIR
    print(f"Config reference: {build_config_reference(output_dir)}")
    print(f"Example configs: {build_example_page(output_dir)}")
    try:
        build_api_docs(output_dir)
    except subprocess.CalledProcessError:
        print("pdoc not installed or failed to run; skipping API docs build.")


if __name__ == "__main__":
    main()
