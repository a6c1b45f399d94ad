"""Command-line interface."""

import argparse
from pathlib import Path
import sys
from typing import TYPE_CHECKING

from . import __version__

if TYPE_CHECKING:
    from .config import PipelineConfig
    from .engine.executor import ExecutionResults
    from .pipeline import PipelineResults, RDFGenerationResults


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="Manifest-driven CSV to RDF knowledge graph builder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  manifest-kg run --manifest manifest.jsonc --output-dir output --debug
  manifest-kg run --config config/pipeline.yaml --workers 4
  manifest-kg validate manifest.jsonc --strict
  manifest-kg template --type full > manifest.jsonc
        """,
    )

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run a manifest")
    source_group = run_parser.add_mutually_exclusive_group(required=True)
    source_group.add_argument("--manifest", "-m", type=str, help="Manifest file path")
    source_group.add_argument("--config", "-c", type=str, help="Configuration file path")
    run_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on recoverable row issues instead of logging warnings",
    )
    run_parser.add_argument(
        "--partial-success",
        action="store_true",
        help="Skip malformed CSV rows instead of failing the step",
    )
    run_parser.add_argument(
        "--workers", type=int, help="Number of threads processing the rows of a step"
    )
    run_parser.add_argument(
        "--format", "-f", type=str, help="RDF output format (turtle, nt, json-ld, ...)"
    )
    run_parser.add_argument(
        "--output-dir", "-o", type=str, help="Directory the RDF files are written to"
    )
    run_parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable DEBUG level logging",
    )

    validate_parser = subparsers.add_parser("validate", help="Validate a manifest")
    validate_parser.add_argument("manifest", type=str, help="Manifest file path")
    validate_parser.add_argument(
        "--strict",
        action="store_true",
        help="Treat recoverable issues (duplicate steps) as errors",
    )

    template_parser = subparsers.add_parser(
        "template", help="Print a starter manifest"
    )
    template_parser.add_argument(
        "--type",
        "-t",
        choices=["basic", "full"],
        default="basic",
        help="Template to print",
    )
    template_parser.add_argument(
        "--output", "-o", type=str, help="Write the template to a file"
    )

    return parser


def _apply_overrides(config: "PipelineConfig", args: argparse.Namespace) -> None:
    """Apply command-line options on top of the loaded configuration."""
    from .rdf_generation.generator import RDFGenerator

    if getattr(args, "debug", False):
        config.logging.level = "DEBUG"
    if getattr(args, "strict", False):
        config.processing.strict = True
    if getattr(args, "partial_success", False):
        config.processing.partial_success = True
    if getattr(args, "workers", None):
        config.processing.workers = args.workers

    output = config.output
    output_format = getattr(args, "format", None)
    if output_format:
        output.format = output_format

    output_dir = getattr(args, "output_dir", None)
    if output_format or output_dir:
        extension = RDFGenerator().extension_for(output.format)
        paths: list[Path | None] = []
        for graph_name, path in (
            ("vocabulary", output.vocabulary_path),
            ("instances", output.instances_path),
        ):
            if path is None:
                # Unset paths get their extension from the format at run time
                if output_dir:
                    path = Path(output_dir) / f"{{MANIFEST}}-{graph_name}.{extension}"
            else:
                path = Path(path).with_suffix(f".{extension}")
                if output_dir:
                    path = Path(output_dir) / path.name
            paths.append(path)
        output.vocabulary_path, output.instances_path = paths


def _print_execution_summary(execution: "ExecutionResults") -> None:
    """Print manifest execution summary."""
    print(
        f"Built {execution['classes']} classes, {execution['properties']} properties, "
        f"{execution['entities']} entities and "
        f"{execution['relationships']} relationships"
    )

    for step in execution["steps"]:
        print(
            f"  - [{step['phase']}] {step['path']}: {step['rows']} rows "
            f"({step['classes']} classes, {step['properties']} properties, "
            f"{step['entities']} entities)"
        )

    warnings = execution["warnings"]
    if warnings:
        print(f"{len(warnings)} warnings (see log)")


def _print_rdf_generation_summary(rdf_data: "RDFGenerationResults") -> None:
    """Print RDF generation summary."""
    generated_files = rdf_data.get("generated_files", [])
    total_files = rdf_data.get("total_files", 0)
    total_size = rdf_data.get("total_file_size", 0)

    if not generated_files:
        print("RDF Generation: No files generated")
        return

    print(f"RDF Generation: {total_files} files generated ({total_size} bytes total)")

    for file_info in generated_files:
        print(
            f"  - {file_info['graph']}: {file_info['path']} ({file_info['triples']} triples, {file_info['file_size']} bytes)"
        )


def _print_success_summary(results: "PipelineResults") -> None:
    """Print pipeline success summary."""
    print("Pipeline completed successfully!")

    duration = results.get("duration")
    if duration is not None:
        print(f"Duration: {duration:.2f} seconds")

    execution = results.get("execution")
    if execution:
        _print_execution_summary(execution)

    rdf_data = results.get("rdf_generation")
    if rdf_data:
        _print_rdf_generation_summary(rdf_data)


def _print_failure_summary(results: "PipelineResults") -> None:
    """Print pipeline failure summary."""
    print("Pipeline failed:", file=sys.stderr)

    error = results.get("error")
    if error:
        print(f"Error: {error}", file=sys.stderr)


def run_pipeline(args: argparse.Namespace) -> int:
    """Run the pipeline."""
    from .config import config_for_manifest, load_config
    from .pipeline import Pipeline

    try:
        if args.config:
            config = load_config(args.config)
        else:
            config = config_for_manifest(args.manifest)
        _apply_overrides(config, args)
    except Exception as e:
        print(f"Failed to load configuration: {e}", file=sys.stderr)
        return 1

    pipeline = None
    try:
        pipeline = Pipeline(config)
        results = pipeline.run()
    except KeyboardInterrupt:
        if pipeline is not None:
            pipeline.cancel()
        print("Interrupted", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Pipeline execution failed: {e}", file=sys.stderr)
        return 1

    success = results["success"]

    if success:
        _print_success_summary(results)
        return 0
    else:
        _print_failure_summary(results)
        return 1


def validate_manifest_file(args: argparse.Namespace) -> int:
    """Load and validate a manifest without running it."""
    from .engine.errors import ManifestKGError
    from .manifest import load_manifest

    try:
        manifest = load_manifest(args.manifest, strict=args.strict)
    except ManifestKGError as e:
        print(f"Invalid manifest: {e}", file=sys.stderr)
        return 1

    print(f"Manifest {args.manifest} is valid")
    print(f"  model: {len(manifest.model.sequence)} steps")
    print(f"  instances: {len(manifest.instances.sequence)} steps")
    return 0


def print_template(args: argparse.Namespace) -> int:
    """Print or write a starter manifest."""
    from .manifest import get_template

    template = get_template(args.type)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(template)
        print(f"Template written to {output_path}")
    else:
        print(template, end="")
    return 0


def main() -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    handlers = {
        "run": run_pipeline,
        "validate": validate_manifest_file,
        "template": print_template,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args)
    else:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
