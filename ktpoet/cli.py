"""Command-line generator: metadata XML in, Kotlin source files out.

Usage:
    python -m ktpoet --metadata api.xml --output-dir build/generated
    python -m ktpoet --metadata api.xml --stdout --unwrap-aliases
"""

import argparse
import logging
import re
import xml.etree.ElementTree as ET
from collections import defaultdict
from dataclasses import dataclass, replace
from pathlib import Path

from ktpoet import __version__
from ktpoet.code import CodeBlock
from ktpoet.declarations import DeclarationTranslator
from ktpoet.errors import ConfigError, KtPoetError
from ktpoet.metadata import ClassKind
from ktpoet.registry import MetadataRegistry, load_metadata
from ktpoet.specs import FileSpec
from ktpoet.types import ClassName
from ktpoet.writer import FileWriteResult, PackageWriteResult, render_file, write_files

DEFAULT_OUTPUT_DIR = Path("build") / "generated"
DEFAULT_INDENT_WIDTH = 4
MAX_INDENT_WIDTH = 16
TYPE_ALIASES_FILE_NAME = "TypeAliases"
_PACKAGE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")


# ===--- CLI config contracts ---=== #


@dataclass(frozen=True)
class GenerateConfig:
    metadata: Path
    output_dir: Path
    indent: str
    default_imports: tuple[str, ...]
    stdout: bool
    unwrap_aliases: bool
    verbose: bool


def validate_metadata_file(path: Path | None) -> Path:
    """Check that --metadata names an existing metadata document."""
    if path is None:
        raise ConfigError(
            "PATH_NOT_FOUND",
            "--metadata is required: declarations are read from a metadata document.",
            "Pass the document: --metadata /path/to/metadata.xml",
        )
    if path.is_dir():
        raise ConfigError(
            "PATH_NOT_FOUND",
            f"--metadata points to a directory, not a document: {path}",
            "Point --metadata at the .xml file itself.",
        )
    if not path.exists():
        raise ConfigError(
            "PATH_NOT_FOUND",
            f"Metadata document not found: {path}",
            "Check the path passed to --metadata.",
        )
    return path


def validate_package_name(name: str) -> str:
    if _PACKAGE_NAME_RE.match(name):
        return name
    raise ConfigError(
        "INVALID_PACKAGE_NAME",
        f"Invalid package name: {name}",
        "Package names are dot-separated identifiers (for example kotlinx.coroutines).",
    )


def parse_indent(width: int) -> str:
    if not 1 <= width <= MAX_INDENT_WIDTH:
        raise ConfigError(
            "INVALID_INDENT",
            f"Unsupported indent width: {width}",
            f"Use a width between 1 and {MAX_INDENT_WIDTH}.",
        )
    return " " * width


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ktpoet", description="Generate Kotlin declarations from metadata"
    )

    parser.add_argument("--metadata", type=Path, default=None)
    parser.add_argument("--output-dir", type=Path, default=None)
    parser.add_argument("--stdout", action="store_true", default=False)
    parser.add_argument("--indent", type=int, default=DEFAULT_INDENT_WIDTH)
    parser.add_argument(
        "--default-import", action="append", default=None, dest="default_imports"
    )
    parser.add_argument("--unwrap-aliases", action="store_true", default=False)
    parser.add_argument("--verbose", action="store_true", default=False)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_argument_parser()
    return parser.parse_args(argv)


def validate_config(args: argparse.Namespace) -> GenerateConfig:
    if args.stdout and args.output_dir is not None:
        raise ConfigError(
            "CONFLICT_OUTPUT_FLAGS",
            "Cannot combine --output-dir with --stdout.",
            "Write files with --output-dir, or print them with --stdout.",
        )

    metadata = validate_metadata_file(args.metadata)
    default_imports = tuple(
        validate_package_name(name) for name in (args.default_imports or [])
    )

    return GenerateConfig(
        metadata=metadata,
        output_dir=args.output_dir if args.output_dir is not None else DEFAULT_OUTPUT_DIR,
        indent=parse_indent(args.indent),
        default_imports=default_imports,
        stdout=bool(args.stdout),
        unwrap_aliases=bool(args.unwrap_aliases),
        verbose=bool(args.verbose),
    )


def build_config(argv: list[str] | None = None) -> GenerateConfig:
    return validate_config(parse_args(argv))


# ===--- File assembly ---=== #

_HEADER_BORDER: str = "x-------------------------------------------x"


def format_file_header(source_label: str, unwrap_aliases: bool = False) -> list[str]:
    """Return the lines of the boxed comment at the top of every generated file.

    Output format (each line is emitted behind "// "):
        x-------------------------------------------x
        | Generated by ktpoet 0.1.0
        | Source: api.xml
        | Type aliases: expanded
        x-------------------------------------------x

    The type aliases line only appears when aliases are unwrapped.

    Raises:
        ValueError: If source_label is empty.
    """
    if not source_label:
        raise ValueError("source_label must not be empty")

    lines = [
        _HEADER_BORDER,
        f"| Generated by ktpoet {__version__}",
        f"| Source: {source_label}",
    ]
    if unwrap_aliases:
        lines.append("| Type aliases: expanded")
    lines.append(_HEADER_BORDER)
    return lines


def _finish(file_spec: FileSpec, header: list[str], config: GenerateConfig) -> FileSpec:
    comment = CodeBlock.builder()
    for line in header:
        comment.add("%L\n", line)
    return replace(
        file_spec,
        comment=comment.build(),
        default_imports=file_spec.default_imports + config.default_imports,
        indent=config.indent,
    )


def build_file_specs(
    registry: MetadataRegistry, config: GenerateConfig
) -> list[FileSpec]:
    """Translate every declaration in the registry into finished file specs.

    One file per top-level class, one per package facade, and one
    TypeAliases file per package for aliases declared outside a facade.

    Raises:
        KtPoetError: Propagated from translation.
    """
    translator = DeclarationTranslator(config.unwrap_aliases)
    header = format_file_header(registry.source_label, config.unwrap_aliases)
    specs: list[FileSpec] = []

    for raw_class in registry.classes:
        specs.append(_finish(translator.class_file_spec(raw_class), header, config))

    for raw_package in registry.packages:
        specs.append(_finish(translator.package_file_spec(raw_package), header, config))

    aliases_by_package = defaultdict(list)
    for raw_alias in registry.type_aliases:
        package_name = ClassName.from_path(raw_alias.name).package_name
        aliases_by_package[package_name].append(raw_alias)
    for package_name in sorted(aliases_by_package):
        builder = FileSpec.builder(package_name, TYPE_ALIASES_FILE_NAME)
        for raw_alias in aliases_by_package[package_name]:
            builder.add_type_alias(translator.type_alias_spec(raw_alias))
        specs.append(_finish(builder.build(), header, config))

    return specs


# ===--- Generation ---=== #


def run_generate(config: GenerateConfig) -> PackageWriteResult | None:
    """Execute the complete generation pipeline for a GenerateConfig.

    Returns:
        PackageWriteResult describing every file written, or None when the
        sources were printed to stdout.

    Raises:
        OSError: Metadata file not readable or filesystem write failure.
        ET.ParseError: Malformed XML.
        ValueError: XML that does not follow the metadata schema.
        KtPoetError: Declarations that cannot be translated or rendered.
    """
    if config.stdout:
        registry = load_metadata(config.metadata)
        for file_spec in build_file_specs(registry, config):
            print(render_file(file_spec), end="")
        return None

    print(f"Parsing: {config.metadata}")
    registry = load_metadata(config.metadata)
    print(
        f"  Metadata: {len(registry.classes)} classes, "
        f"{len(registry.packages)} packages, {len(registry.type_aliases)} type aliases"
    )

    file_specs = build_file_specs(registry, config)
    print(f"  Assembling: {len(file_specs)} file specs")

    result = write_files(config.output_dir, file_specs)
    print(
        f"  Written: {len(result.files)} files, "
        f"{result.total_lines} lines to {result.output_dir}"
    )

    summary = build_generation_summary(registry, result)
    print_generation_summary(summary)
    return result


# ===--- Summary report ---=== #


@dataclass(frozen=True)
class DeclarationCounts:
    """Number of declarations per kind, nested classes included.

    Attributes:
        classes: Plain classes.
        interfaces: Interfaces, fun interfaces included.
        objects: Objects and companion objects.
        enums: Enum classes.
        annotations: Annotation classes.
        functions: Member and top-level functions.
        properties: Member and top-level properties.
        type_aliases: Type aliases, in package facades or standalone.
    """

    classes: int
    interfaces: int
    objects: int
    enums: int
    annotations: int
    functions: int
    properties: int
    type_aliases: int


@dataclass(frozen=True)
class GenerationSummary:
    source_label: str
    output_dir: str
    counts: DeclarationCounts
    files: tuple[FileWriteResult, ...]


def _walk_classes(classes):
    for raw_class in classes:
        yield raw_class
        yield from _walk_classes(raw_class.nested_classes)
        if raw_class.companion_object is not None:
            yield from _walk_classes((raw_class.companion_object,))


def build_declaration_counts(registry: MetadataRegistry) -> DeclarationCounts:
    kinds: dict[ClassKind, int] = defaultdict(int)
    functions = 0
    properties = 0
    for raw_class in _walk_classes(registry.classes):
        kinds[raw_class.kind] += 1
        functions += len(raw_class.functions)
        properties += len(raw_class.properties)

    type_aliases = len(registry.type_aliases)
    for raw_package in registry.packages:
        functions += len(raw_package.functions)
        properties += len(raw_package.properties)
        type_aliases += len(raw_package.type_aliases)

    return DeclarationCounts(
        classes=kinds[ClassKind.CLASS],
        interfaces=kinds[ClassKind.INTERFACE],
        objects=kinds[ClassKind.OBJECT] + kinds[ClassKind.COMPANION_OBJECT],
        enums=kinds[ClassKind.ENUM_CLASS],
        annotations=kinds[ClassKind.ANNOTATION_CLASS],
        functions=functions,
        properties=properties,
        type_aliases=type_aliases,
    )


def build_generation_summary(
    registry: MetadataRegistry, write_result: PackageWriteResult
) -> GenerationSummary:
    return GenerationSummary(
        source_label=registry.source_label,
        output_dir=str(write_result.output_dir),
        counts=build_declaration_counts(registry),
        files=write_result.files,
    )


def format_generation_summary(summary: GenerationSummary) -> str:
    """Render a GenerationSummary to a multi-line console string.

    Line counts use thousands separators. Returns a string with exactly
    one trailing newline.
    """
    lines: list[str] = []
    lines.append("Kotlin declarations generated:")
    lines.append("")
    lines.append(f"  Source:     {summary.source_label}")
    lines.append(f"  Output:     {summary.output_dir}")
    lines.append("")
    lines.append("  Declarations:")

    counts = summary.counts
    rows = (
        ("Classes:", counts.classes),
        ("Interfaces:", counts.interfaces),
        ("Objects:", counts.objects),
        ("Enums:", counts.enums),
        ("Annotations:", counts.annotations),
        ("Functions:", counts.functions),
        ("Properties:", counts.properties),
        ("Aliases:", counts.type_aliases),
    )
    for label, count in rows:
        lines.append(f"    {label:<13}{count:>6}")

    lines.append("")
    lines.append("  Files written:")
    for file_result in summary.files:
        line_str = f"{file_result.line_count:>6,} lines"
        lines.append(f"    {file_result.filename:<40} {line_str}")

    total_lines = sum(f.line_count for f in summary.files)
    lines.append("")
    lines.append(f"  Total: {total_lines:,} lines across {len(summary.files)} files")
    lines.append("")

    return "\n".join(lines)


def print_generation_summary(summary: GenerationSummary) -> None:
    print(format_generation_summary(summary), end="")


# ===--- Main generation ---=== #


def main(argv: list[str] | None = None):
    try:
        config = build_config(argv)
    except ConfigError as err:
        print(f"Config error [{err.code}]: {err.message}")
        if err.suggestion:
            print(f"Hint: {err.suggestion}")
        raise SystemExit(1) from err

    if config.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        run_generate(config)
    except KtPoetError as err:
        print(f"Translation error [{err.code}]: {err.message}")
        if err.suggestion:
            print(f"Hint: {err.suggestion}")
        raise SystemExit(1) from err
    except (OSError, ET.ParseError, ValueError) as err:
        print(f"Error: {err}")
        raise SystemExit(1) from err


if __name__ == "__main__":
    main()
