"""Tests for the command-line interface."""

import json
from pathlib import Path
import sys
from typing import Any
from unittest.mock import Mock, patch

import pytest
from src.manifest_kg import cli
from src.manifest_kg.cli import main


def _main(*argv: str) -> int:
    with patch.object(sys, "argv", ["manifest-kg", *argv]):
        return main()


@pytest.fixture
def manifest_file(
    materials_dir: Path, materials_manifest_data: dict[str, Any]
) -> Path:
    path = materials_dir / "materials.jsonc"
    path.write_text(
        "// bill of materials\n" + json.dumps(materials_manifest_data, indent=2),
        encoding="utf-8",
    )
    return path


class TestTemplateCommand:
    """Test the template command."""

    def test_prints_template(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _main("template", "--type", "full") == 0

        output = capsys.readouterr().out
        assert '"@type": "CSVImportManifest"' in output
        assert "PropertiesInstanceStep" in output

    def test_writes_template(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        target = tmp_path / "new" / "manifest.jsonc"

        assert _main("template", "-o", str(target)) == 0

        assert target.read_text(encoding="utf-8").startswith("{")
        assert "Template written to" in capsys.readouterr().out


class TestValidateCommand:
    """Test the validate command."""

    def test_valid_manifest(
        self, manifest_file: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _main("validate", str(manifest_file)) == 0

        output = capsys.readouterr().out
        assert "is valid" in output
        assert "model: 2 steps" in output
        assert "instances: 2 steps" in output

    def test_invalid_manifest(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = tmp_path / "bad.json"
        path.write_text(
            '{"model": {"sequence": [{"path": "a.csv", "@type": "SubClassVocabularyStep"}]}}',
            encoding="utf-8",
        )

        assert _main("validate", str(path)) == 1

        assert "Invalid manifest" in capsys.readouterr().err


class TestRunCommand:
    """Test the run command."""

    def test_run_manifest(
        self,
        tmp_path: Path,
        manifest_file: Path,
        capsys: pytest.CaptureFixture[str],
        restore_root_logger,
    ) -> None:
        output_dir = tmp_path / "rdf"

        exit_code = _main(
            "run", "-m", str(manifest_file), "-f", "nt", "-o", str(output_dir)
        )

        assert exit_code == 0
        assert (output_dir / "materials-vocabulary.nt").exists()
        assert (output_dir / "materials-instances.nt").exists()
        output = capsys.readouterr().out
        assert "Pipeline completed successfully!" in output
        assert "6 entities" in output

    def test_run_failure_exit_code(
        self,
        manifest_file: Path,
        materials_dir: Path,
        capsys: pytest.CaptureFixture[str],
        restore_root_logger,
    ) -> None:
        (materials_dir / "data" / "Material.csv").write_text(
            "Material Number,has Material Class,Density\nM1,Quartz,2.65\n",
            encoding="utf-8",
        )

        assert _main("run", "-m", str(manifest_file), "-o", str(materials_dir)) == 1

        assert "Pipeline failed" in capsys.readouterr().err

    def test_run_rejects_unknown_format(
        self, manifest_file: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _main("run", "-m", str(manifest_file), "-f", "csv") == 1

        assert "Failed to load configuration" in capsys.readouterr().err

    def test_run_applies_overrides(
        self, manifest_file: Path, tmp_path: Path
    ) -> None:
        pipeline = Mock()
        pipeline.run.return_value = {
            "success": True,
            "duration": 0.1,
            "execution": None,
            "rdf_generation": None,
        }

        with patch.object(cli, "_print_success_summary"), patch(
            "src.manifest_kg.pipeline.Pipeline", return_value=pipeline
        ) as pipeline_class:
            exit_code = _main(
                "run",
                "-m",
                str(manifest_file),
                "--strict",
                "--partial-success",
                "--workers",
                "3",
                "--debug",
                "-o",
                str(tmp_path),
            )

        assert exit_code == 0
        config = pipeline_class.call_args.args[0]
        assert config.processing.strict is True
        assert config.processing.partial_success is True
        assert config.processing.workers == 3
        assert config.logging.level == "DEBUG"
        assert Path(config.output.instances_path) == tmp_path / (
            "{MANIFEST}-instances.ttl"
        )

    def test_keyboard_interrupt_cancels(self, manifest_file: Path) -> None:
        pipeline = Mock()
        pipeline.run.side_effect = KeyboardInterrupt

        with patch("src.manifest_kg.pipeline.Pipeline", return_value=pipeline):
            assert _main("run", "-m", str(manifest_file)) == 130

        pipeline.cancel.assert_called_once()


def test_no_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert _main() == 1
    assert "usage" in capsys.readouterr().out
