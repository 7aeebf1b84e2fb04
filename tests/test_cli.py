"""
Tests for CLI commands — plan, sources, clean, and global options.
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from gccforge.main import cli


@pytest.fixture
def runner(tmp_path: Path, monkeypatch) -> CliRunner:
    """Runner inside an empty directory so no gccforge.yml is picked up."""
    monkeypatch.chdir(tmp_path)
    for var in ("GCCFORGE_WORKDIR", "GCCFORGE_LOG_FILE", "TG_BOT_API", "CHAT_ID", "GCCFORGE_PUBLISH_REPO"):
        monkeypatch.delenv(var, raising=False)
    return CliRunner()


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "build GCC cross toolchains" in result.output
        for command in ("build", "plan", "clean", "sources"):
            assert command in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_verbose_short_flag_leaves_version_to_subcommand(self, runner):
        result = runner.invoke(cli, ["-V", "plan", "-a", "arm64", "-s", "gnu", "-v", "11"])
        assert result.exit_code == 0, result.output
        assert "aarch64-linux-gnu" in result.stdout

    def test_bad_config_file(self, runner, tmp_path: Path):
        config = tmp_path / "broken.yml"
        config.write_text("- just\n- a list\n")
        result = runner.invoke(cli, ["--config", str(config), "plan", "-a", "arm64", "-s", "gnu", "-v", "11"])
        assert result.exit_code == 1
        assert "Expected a YAML mapping" in result.output


class TestPlanCommand:
    def test_text(self, runner):
        result = runner.invoke(cli, ["plan", "-a", "arm64", "-s", "gnu", "-v", "11"])
        assert result.exit_code == 0, result.output
        assert "aarch64-linux-gnu" in result.output
        assert "Kernel arch: arm64" in result.output
        assert "Patch: GCC_10_up" in result.output
        assert "binutils" in result.output

    def test_json(self, runner):
        result = runner.invoke(cli, ["plan", "-a", "arm", "-s", "gnu", "-v", "10", "-e", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["target"] == "arm-eabi"
        assert data["bare_metal"] is True
        assert data["libc"] == "newlib"

    def test_package_codec(self, runner):
        result = runner.invoke(cli, ["plan", "-a", "arm64", "-s", "gnu", "-v", "11", "-p", "zstd", "--json"])
        assert json.loads(result.stdout)["codec"] == "zstd"

    def test_invalid_arch(self, runner):
        result = runner.invoke(cli, ["plan", "-a", "mips", "-s", "gnu", "-v", "11"])
        assert result.exit_code == 2
        assert "mips" in result.output

    def test_missing_version(self, runner):
        result = runner.invoke(cli, ["plan", "-a", "arm64", "-s", "gnu"])
        assert result.exit_code == 2

    def test_rejected_configuration(self, runner):
        result = runner.invoke(cli, ["plan", "-a", "x86_64", "-s", "gnu", "-v", "5"])
        assert result.exit_code == 1
        assert "Use newer version" in result.output
        assert "Usage:" in result.output

    def test_rejected_configuration_json(self, runner):
        result = runner.invoke(cli, ["plan", "-a", "x86_64", "-s", "gnu", "-v", "5", "--json"])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["error"]["kind"] == "ValidationError"


class TestSourcesCommand:
    def test_list_json(self, runner, tmp_path: Path):
        (tmp_path / "sources" / "binutils").mkdir(parents=True)
        result = runner.invoke(cli, [
            "sources", "list", "-a", "arm64", "-s", "gnu", "-v", "11",
            "--workdir", str(tmp_path), "--json",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["target"] == "aarch64-linux-gnu"
        present = {s["dependency"] for s in data["sources"] if s["present"]}
        assert present == {"binutils"}

    def test_list_text(self, runner, tmp_path: Path):
        result = runner.invoke(cli, [
            "sources", "list", "-a", "arm", "-s", "linaro", "-v", "7", "--workdir", str(tmp_path),
        ])
        assert result.exit_code == 0, result.output
        assert "Sources for arm-linux-gnueabi" in result.output
        assert "✗" in result.output


class TestCleanCommand:
    def test_clean(self, runner, tmp_path: Path):
        (tmp_path / "build-gcc" / "gcc").mkdir(parents=True)
        (tmp_path / "arm-eabi" / "bin").mkdir(parents=True)
        (tmp_path / "arm-eabi-10.x-gnu-20221014.tar.gz").write_text("old")

        result = runner.invoke(cli, ["clean", "--workdir", str(tmp_path), "-t", "arm-eabi"])

        assert result.exit_code == 0, result.output
        assert "Clean" in result.output
        assert not (tmp_path / "build-gcc").exists()
        assert not (tmp_path / "arm-eabi").exists()
        assert not list(tmp_path.glob("*.tar.*"))


class TestBuildCommand:
    def test_rejected_build_exits_nonzero(self, runner, tmp_path: Path):
        result = runner.invoke(cli, [
            "build", "-a", "x86_64", "-s", "gnu", "-v", "5", "--workdir", str(tmp_path),
        ])
        assert result.exit_code == 1
        assert "❌" in result.output
        assert not (tmp_path / "build-gcc").exists()

    def test_run_log_holds_only_this_run(self, runner, tmp_path: Path):
        log = tmp_path / "build-gnu-gcc-tc.log"
        log.write_text("output of an earlier build\n")

        runner.invoke(cli, ["build", "-a", "x86_64", "-s", "gnu", "-v", "5", "--workdir", str(tmp_path)])

        assert "output of an earlier build" not in log.read_text()

    def test_invalid_codec(self, runner):
        result = runner.invoke(cli, ["build", "-a", "arm64", "-s", "gnu", "-v", "11", "-p", "bz2"])
        assert result.exit_code == 2
