"""Manifest KG Pipeline: load a manifest, execute it and write the graph."""

from datetime import datetime
import logging
import os
from pathlib import Path
import threading
import time
from typing import TypedDict

from dotenv import load_dotenv

from .config import PipelineConfig
from .engine.executor import ExecutionResults, ManifestExecutor
from .engine.state import BuildState
from .manifest import Manifest, load_manifest
from .rdf_generation.generator import RDFGenerator
from .sources.file import CSVFileSource
from .utils.logging import configure_external_loggers, setup_logging

logger = logging.getLogger(__name__)

DATA_ROOT_ENV = "MANIFEST_KG_DATA_ROOT"


class GeneratedFileInfo(TypedDict):
    graph: str
    path: str
    triples: int
    file_size: int


class RDFGenerationResults(TypedDict):
    generated_files: list[GeneratedFileInfo]
    total_files: int
    output_format: str
    total_file_size: int


class PipelineResults(TypedDict):
    start_time: float
    end_time: float | None
    duration: float | None
    manifest: str
    execution: ExecutionResults | None
    rdf_generation: RDFGenerationResults | None
    success: bool
    error: str | None


class Pipeline:
    """Main pipeline orchestrator."""

    def __init__(self, config: PipelineConfig):
        load_dotenv()

        self.config = config

        # Setup logging
        setup_logging(config.logging)
        configure_external_loggers()
        self.logger = logging.getLogger(__name__)

        processing = config.processing
        self.source = CSVFileSource(
            encoding=processing.encoding,
            delimiter=processing.delimiter,
            partial_success=processing.partial_success,
        )
        self.cancel_event = threading.Event()
        self.state: BuildState | None = None

    @property
    def manifest_path(self) -> Path:
        return Path(self.config.manifest_path)

    @property
    def data_root(self) -> Path:
        """Directory the phase and step paths are resolved against."""
        env_root = os.getenv(DATA_ROOT_ENV)
        if env_root:
            return Path(env_root)
        if self.config.data_root is not None:
            return Path(self.config.data_root)
        return self.manifest_path.parent

    def cancel(self) -> None:
        """Cancel a running pipeline; steps already completed are kept."""
        self.logger.warning("Cancellation requested")
        self.cancel_event.set()

    def run(self) -> PipelineResults:
        """Execute the complete pipeline.

        Returns:
            Pipeline execution results and statistics
        """
        start_time = time.time()
        self.logger.info("Starting Manifest KG Pipeline")

        results: PipelineResults = {
            "start_time": start_time,
            "end_time": None,
            "duration": None,
            "manifest": str(self.manifest_path),
            "execution": None,
            "rdf_generation": None,
            "success": False,
            "error": None,
        }

        executor: ManifestExecutor | None = None
        try:
            # Step 1: Manifest loading
            self.logger.info("Step 1: Loading manifest")
            manifest = load_manifest(
                self.manifest_path, strict=self.config.processing.strict
            )

            # Step 2: Manifest execution
            self.logger.info("Step 2: Executing manifest")
            executor = self._create_executor(manifest)
            results["execution"] = executor.run()

            # Step 3: RDF Generation
            self.logger.info("Step 3: RDF Generation")
            results["rdf_generation"] = self._run_rdf_generation(
                manifest, executor.state
            )

            results["success"] = True
            end_time = time.time()
            results["end_time"] = end_time
            results["duration"] = end_time - start_time
            self.logger.info(
                f"Pipeline completed successfully in {results['duration']:.2f} seconds"
            )

        except Exception as e:
            self.logger.error(f"Pipeline failed: {e}")
            results["error"] = str(e)
            end_time = time.time()
            results["end_time"] = end_time
            results["duration"] = end_time - start_time

        finally:
            if executor is not None:
                self.state = executor.state

        return results

    def _create_executor(self, manifest: Manifest) -> ManifestExecutor:
        processing = self.config.processing
        self.logger.debug(f"Resolving data paths against {self.data_root}")
        return ManifestExecutor(
            manifest,
            self.source,
            root=self.data_root,
            strict=processing.strict,
            workers=processing.workers,
            chunk_size=processing.chunk_size,
            cancel_event=self.cancel_event,
        )

    def _run_rdf_generation(
        self, manifest: Manifest, state: BuildState
    ) -> RDFGenerationResults:
        """Run RDF generation step."""
        output = self.config.output
        generator = RDFGenerator(
            vocabulary_base=manifest.model.base_iri,
            instances_base=manifest.instances.base_iri,
        )

        extension = generator.extension_for(output.format)
        vocabulary_path = self._output_path(
            output.vocabulary_path, "vocabulary", extension
        )
        instances_path = self._output_path(output.instances_path, "instances", extension)
        generator.save(state, vocabulary_path, instances_path, output.format)

        generated_files: list[GeneratedFileInfo] = []
        for graph_name, path, graph in (
            ("vocabulary", vocabulary_path, generator.vocabulary),
            ("instances", instances_path, generator.instances),
        ):
            generated_files.append(
                {
                    "graph": graph_name,
                    "path": str(path),
                    "triples": len(graph),
                    "file_size": path.stat().st_size if path.exists() else 0,
                }
            )

        return {
            "generated_files": generated_files,
            "total_files": len(generated_files),
            "output_format": output.format,
            "total_file_size": sum(f["file_size"] for f in generated_files),
        }

    def _output_path(
        self, configured: str | Path | None, graph_name: str, extension: str
    ) -> Path:
        if configured is None:
            configured = f"output/{{MANIFEST}}-{graph_name}.{extension}"
        return Path(self._process_dynamic_path(str(configured)))

    def _process_dynamic_path(self, path_template: str) -> str:
        """Process dynamic path templates."""
        current_date = datetime.now().strftime("%Y-%m-%d")
        processed_path = path_template.replace("{DATE}", current_date)
        return processed_path.replace("{MANIFEST}", self.manifest_path.stem)
