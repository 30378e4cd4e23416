"""Unit tests for CLI commands."""

from pathlib import Path
import sys

import pytest
import yaml
from click.testing import CliRunner
from sqlalchemy import create_engine, text

ROOT = Path(__file__).resolve().parents[2]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from circannot import __version__
from circannot.cli import cli, main
from circannot.cli.exit_codes import EXIT_ERROR, EXIT_SUCCESS, EXIT_USAGE
from circannot.modules.circ_loader import read_circs


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self):
        """Test CLI help message."""
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("annotate", "plot", "studies", "init-config"):
            assert command in result.output

    def test_cli_version(self):
        """Test CLI version display."""
        runner = CliRunner()
        result = runner.invoke(cli, ["-V"])
        assert result.exit_code == 0
        assert f"circannot {__version__}" in result.output

    def test_main_returns_exit_codes(self):
        """main() maps click exits to shell exit codes."""
        assert main(["-V"]) == EXIT_SUCCESS
        assert main(["annotate", "--no-such-option"]) == EXIT_USAGE


class TestCLIConfig:
    """Test config-related CLI functionality."""

    def test_init_config_stdout(self):
        """Test config generation via init-config --stdout."""
        runner = CliRunner()
        result = runner.invoke(cli, ["init-config", "--stdout"])
        assert result.exit_code == 0
        assert "annotation_file:" in result.output
        assert "feature_order" in result.output

    def test_init_config_output_file(self):
        """Test init-config writes to file with --output-file."""
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["init-config", "--output-file", "custom.yaml"])
            assert result.exit_code == 0
            contents = Path("custom.yaml").read_text(encoding="utf-8")
            assert "ensembl_hosts:" in contents

    def test_init_config_assembly(self):
        result = CliRunner().invoke(cli, ["init-config", "--stdout", "-a", "mm10"])
        assert result.exit_code == 0
        assert yaml.safe_load(result.output)["assembly"] == "mm10"

    def test_init_config_unknown_assembly(self):
        result = CliRunner().invoke(cli, ["init-config", "--stdout", "-a", "hg17"])
        assert result.exit_code == EXIT_USAGE

    def test_init_config_keeps_existing_file(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("circannot.yaml").write_text("assembly: dm6\n", encoding="utf-8")
            result = runner.invoke(cli, ["init-config"])
            assert result.exit_code == EXIT_ERROR
            assert Path("circannot.yaml").read_text(encoding="utf-8") == "assembly: dm6\n"
            result = runner.invoke(cli, ["init-config", "--force"])
            assert result.exit_code == 0
            assert "annotation_file:" in Path("circannot.yaml").read_text(encoding="utf-8")


class TestCLIAnnotate:
    """Test the annotate command."""

    def test_annotate_without_symbols(self, sites_file, gtf_file, tmp_path):
        """Annotate the toy candidates end to end."""
        out = tmp_path / "annotated.bed"
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["annotate", "-i", str(sites_file), "-g", str(gtf_file), "-a", "hg19", "-o", str(out), "--no-symbols"],
        )
        assert result.exit_code == 0, result.output
        annotated = read_circs(out)
        assert annotated["host"].tolist() == ["GENEP", "GENEP", "GENEM", "intergenic"]
        # written back in BED convention
        assert annotated["start"].tolist() == [299, 119, 999, 5000]

    def test_annotate_from_config_file(self, sites_file, gtf_file, tmp_path):
        """Inputs may come from the YAML configuration."""
        out = tmp_path / "from_config.bed"
        config = tmp_path / "circannot.yaml"
        config.write_text(
            yaml.dump(
                {
                    "input_file": str(sites_file),
                    "annotation_file": str(gtf_file),
                    "output_file": str(out),
                    "assembly": "mm10",
                    "annotation": {"min_reads": 5},
                    "lookup": {"resolve_symbols": False},
                }
            )
        )
        runner = CliRunner()
        result = runner.invoke(cli, ["annotate", "-c", str(config)])
        assert result.exit_code == 0, result.output
        assert read_circs(out)["name"].tolist() == ["circ_001", "circ_003"]

    def test_bad_log_level_in_config(self, sites_file, gtf_file, tmp_path):
        config = tmp_path / "circannot.yaml"
        config.write_text(yaml.dump({"runtime": {"log_level": "chatty"}}))
        result = CliRunner().invoke(
            cli,
            ["annotate", "-c", str(config), "-i", str(sites_file), "-g", str(gtf_file), "-a", "hg19", "-o", str(tmp_path / "x.bed")],
        )
        assert result.exit_code == EXIT_ERROR
        assert isinstance(result.exception, SystemExit)
        assert "log_level" in result.output

    def test_missing_output_is_usage_error(self, sites_file, gtf_file):
        runner = CliRunner()
        result = runner.invoke(cli, ["annotate", "-i", str(sites_file), "-g", str(gtf_file), "-a", "hg19"])
        assert result.exit_code == EXIT_USAGE

    def test_unknown_assembly(self, sites_file, gtf_file, tmp_path):
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["annotate", "-i", str(sites_file), "-g", str(gtf_file), "-a", "hg17", "-o", str(tmp_path / "x.bed"), "--no-symbols"],
        )
        assert result.exit_code == EXIT_ERROR
        assert "hg17" in result.output

    def test_malformed_input(self, gtf_file, tmp_path):
        bad = tmp_path / "bad.bed"
        bad.write_text("chr1\t500\t100\tcirc_1\t1\t+\n")
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["annotate", "-i", str(bad), "-g", str(gtf_file), "-a", "hg19", "-o", str(tmp_path / "x.bed"), "--no-symbols"],
        )
        assert result.exit_code == EXIT_ERROR
        assert not (tmp_path / "x.bed").exists()


class TestCLIPlot:
    """Test the plot command."""

    @pytest.fixture
    def annotated_file(self, sites_file, gtf_file, tmp_path):
        out = tmp_path / "annotated.bed"
        result = CliRunner().invoke(
            cli,
            ["annotate", "-i", str(sites_file), "-g", str(gtf_file), "-a", "hg19", "-o", str(out), "--no-symbols"],
        )
        assert result.exit_code == 0, result.output
        return out

    @pytest.mark.parametrize("kind", ["hist", "pie"])
    def test_plot(self, annotated_file, tmp_path, kind):
        figure = tmp_path / f"{kind}.png"
        result = CliRunner().invoke(cli, ["plot", "-i", str(annotated_file), "--kind", kind, "-o", str(figure)])
        assert result.exit_code == 0, result.output
        assert figure.stat().st_size > 0

    def test_pie_needs_annotation(self, sites_file, tmp_path):
        result = CliRunner().invoke(
            cli, ["plot", "-i", str(sites_file), "--kind", "pie", "-o", str(tmp_path / "pie.png")]
        )
        assert result.exit_code == EXIT_ERROR


class TestCLIStudies:
    """Test the studies command against a SQLite circBase mirror."""

    @pytest.fixture
    def config_file(self, tmp_path):
        database = tmp_path / "circbase.db"
        engine = create_engine(f"sqlite:///{database}")
        with engine.begin() as conn:
            conn.execute(text("CREATE TABLE hsa_hg19_stats (expID TEXT, sample TEXT)"))
            conn.execute(text("INSERT INTO hsa_hg19_stats VALUES ('Salzman2013', 'HeLa')"))
        engine.dispose()
        config = tmp_path / "circannot.yaml"
        config.write_text(yaml.dump({"circbase": {"drivername": "sqlite", "database": str(database)}}))
        return config

    def test_list(self, config_file):
        result = CliRunner().invoke(cli, ["studies", "-c", str(config_file)])
        assert result.exit_code == 0, result.output
        assert "Salzman2013" in result.output
        assert "HeLa" in result.output

    def test_no_match(self, config_file):
        result = CliRunner().invoke(cli, ["studies", "-c", str(config_file), "--organism", "mmu"])
        assert result.exit_code == EXIT_ERROR
