from __future__ import annotations

import os
from pathlib import Path
import subprocess
import sys


EXPECTED_FILES = {
    "com/example/Container.kt",
    "com/example/Box.kt",
    "com/example/Color.kt",
    "com/example/Event.kt",
    "com/example/Utils.kt",
    "com/example/handlers/TypeAliases.kt",
}


def _tool_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _fixture_metadata() -> Path:
    return _tool_root() / "tests" / "fixtures" / "sample_metadata.xml"


def _run(args: list[str], cwd: Path | None = None) -> subprocess.CompletedProcess[str]:
    run_cwd = _tool_root() if cwd is None else cwd
    return subprocess.run(
        [sys.executable, "-m", "ktpoet", *args],
        cwd=run_cwd,
        env={**os.environ, "PYTHONPATH": str(_tool_root())},
        capture_output=True,
        text=True,
        check=False,
    )


def _written_files(output_dir: Path) -> set[str]:
    return {p.relative_to(output_dir).as_posix() for p in output_dir.rglob("*.kt")}


def test_t_01_generate_with_explicit_paths_writes_expected_surface(
    tmp_path: Path,
) -> None:
    output_dir = tmp_path / "generated"

    result = _run(
        [
            "--metadata",
            str(_fixture_metadata().resolve()),
            "--output-dir",
            str(output_dir.resolve()),
        ]
    )

    assert result.returncode == 0
    assert "Kotlin declarations generated:" in result.stdout
    assert "Total:" in result.stdout
    assert _written_files(output_dir) == EXPECTED_FILES


def test_t_02_generated_box_matches_expected_source(tmp_path: Path) -> None:
    output_dir = tmp_path / "generated"

    result = _run(
        [
            "--metadata",
            str(_fixture_metadata().resolve()),
            "--output-dir",
            str(output_dir.resolve()),
            "--indent",
            "2",
        ]
    )

    assert result.returncode == 0
    content = (output_dir / "com" / "example" / "Box.kt").read_text(encoding="utf-8")
    assert content.endswith(
        "package com.example\n"
        "\n"
        "public data class Box<out T : Any>(\n"
        "  public val item: T,\n"
        ") : Container<T> {\n"
        "  override fun get(): T {\n"
        '    throw NotImplementedError("Stub!")\n'
        "  }\n"
        "}\n"
    )


def test_t_03_stdout_mode_prints_sources_and_writes_nothing(tmp_path: Path) -> None:
    result = _run(["--metadata", str(_fixture_metadata().resolve()), "--stdout"], cwd=tmp_path)

    assert result.returncode == 0
    assert "public enum class Color {\n" in result.stdout
    assert "import java.util.Date as UtilDate\n" in result.stdout
    assert "Kotlin declarations generated:" not in result.stdout
    assert not (tmp_path / "build").exists()


def test_t_04_default_output_dir_is_relative_to_cwd(tmp_path: Path) -> None:
    result = _run(["--metadata", str(_fixture_metadata().resolve())], cwd=tmp_path)

    assert result.returncode == 0
    assert _written_files(tmp_path / "build" / "generated") == EXPECTED_FILES


def test_t_05_missing_metadata_exits_with_config_error(tmp_path: Path) -> None:
    result = _run(["--metadata", str(tmp_path / "missing.xml")])

    assert result.returncode == 1
    assert "Config error [PATH_NOT_FOUND]:" in result.stdout
    assert "Hint:" in result.stdout


def test_t_06_conflicting_output_flags_exit_with_config_error(tmp_path: Path) -> None:
    result = _run(
        [
            "--metadata",
            str(_fixture_metadata().resolve()),
            "--stdout",
            "--output-dir",
            str(tmp_path),
        ]
    )

    assert result.returncode == 1
    assert "Config error [CONFLICT_OUTPUT_FLAGS]:" in result.stdout


def test_t_07_verbose_logs_to_stderr(tmp_path: Path) -> None:
    result = _run(
        [
            "--metadata",
            str(_fixture_metadata().resolve()),
            "--output-dir",
            str(tmp_path / "out"),
            "--verbose",
        ]
    )

    assert result.returncode == 0
    assert "ktpoet.registry: Parsed 4 class(es)" in result.stderr
