import argparse
import sys
import xml.etree.ElementTree as ET
from collections.abc import Callable
from pathlib import Path

import pytest

PROJECT_DIR = Path(__file__).resolve().parent.parent
if str(PROJECT_DIR) not in sys.path:
    sys.path.insert(0, str(PROJECT_DIR))

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture
def sample_metadata() -> Path:
    return FIXTURES_DIR / "sample_metadata.xml"


@pytest.fixture
def existing_paths(tmp_path: Path) -> dict[str, Path]:
    metadata = tmp_path / "metadata.xml"
    metadata.write_text("<metadata />\n", encoding="utf-8")
    return {"metadata": metadata, "output_dir": tmp_path / "out"}


@pytest.fixture
def missing_path(tmp_path: Path) -> Path:
    return tmp_path / "missing"


@pytest.fixture
def make_args(existing_paths: dict[str, Path]) -> Callable[..., argparse.Namespace]:
    def _make_args(**overrides: object) -> argparse.Namespace:
        base_args: dict[str, object] = {
            "metadata": existing_paths["metadata"],
            "output_dir": existing_paths["output_dir"],
            "stdout": False,
            "indent": 4,
            "default_imports": None,
            "unwrap_aliases": False,
            "verbose": False,
        }
        base_args.update(overrides)
        return argparse.Namespace(**base_args)

    return _make_args


@pytest.fixture
def make_metadata_root() -> Callable[[str], ET.Element]:
    def _make_metadata_root(inner_xml: str) -> ET.Element:
        return ET.fromstring(f"<metadata>{inner_xml}</metadata>")

    return _make_metadata_root
