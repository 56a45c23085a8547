"""
Tests for the command-line interface.
"""

import json
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from stylescanner.cli import main, create_parser


class TestParser:
    """Tests for argument parsing."""

    def test_check_arguments(self):
        args = create_parser().parse_args(["check", "src", "-f", "json", "-s", "warning", "--disable", "force-unwrap"])
        assert args.command == "check"
        assert args.target == "src"
        assert args.format == "json"
        assert args.severity == "warning"
        assert args.disable == ["force-unwrap"]

    def test_fix_arguments(self):
        args = create_parser().parse_args(["fix", "--dry-run", "--no-backup"])
        assert args.target == "."
        assert args.dry_run
        assert args.no_backup


class TestCommands:
    """Tests for the CLI commands."""

    def test_no_command(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_check_clean_file(self, tmp_path, capsys):
        path = tmp_path / "a.swift"
        path.write_text("let a: Int = 1;\n")
        assert main(["check", str(path), "--no-color"]) == 0
        assert "No style issues found." in capsys.readouterr().out

    def test_check_exit_code_on_errors(self, tmp_path, capsys):
        (tmp_path / ".stylescanner.yaml").write_text(
            "rules:\n  statement-termination:\n    severity: error\n"
        )
        path = tmp_path / "a.swift"
        path.write_text("var x:Int = 5\n")
        assert main(["check", str(tmp_path), "--no-color"]) == 1
        assert main(["check", str(tmp_path), "--disable", "statement-termination"]) == 0

    def test_check_json_output_file(self, tmp_path):
        path = tmp_path / "a.swift"
        path.write_text("var x:Int = 5\n")
        output = tmp_path / "report.json"
        assert main(["check", str(path), "-f", "json", "-o", str(output)]) == 0
        data = json.loads(output.read_text())
        assert data["findings"][0]["rule_id"] == "statement-termination"

    def test_fix(self, tmp_path, capsys):
        path = tmp_path / "a.swift"
        path.write_text("var x:Int = 5\n")
        assert main(["fix", str(tmp_path), "--no-backup", "--no-color"]) == 0
        assert path.read_text() == "var x:Int = 5;\n"
        assert not (tmp_path / "a.swift.bak").exists()
        assert "Applied 1 fixes in 1 files" in capsys.readouterr().out

    def test_fix_dry_run(self, tmp_path, capsys):
        path = tmp_path / "a.swift"
        path.write_text("var x:Int = 5\n")
        assert main(["fix", str(tmp_path), "--dry-run", "--no-color"]) == 0
        assert path.read_text() == "var x:Int = 5\n"
        out = capsys.readouterr().out
        assert "REMEDIATION REPORT" in out
        assert "[DRY RUN]" in out

    def test_check_with_fix(self, tmp_path, capsys):
        path = tmp_path / "a.swift"
        path.write_text("var x:Int = 5\n")
        assert main(["check", str(path), "--fix", "--no-color"]) == 0
        assert path.read_text() == "var x:Int = 5;\n"
        assert "Fixes applied: 1" in capsys.readouterr().out

    def test_init(self, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        assert main(["init"]) == 0
        assert (tmp_path / ".stylescanner.yaml").exists()
        assert main(["init"]) == 1
        assert main(["init", "--force"]) == 0

    def test_list_rules(self, capsys):
        assert main(["list-rules"]) == 0
        assert "Total: 10 rules" in capsys.readouterr().out

    def test_invalid_config(self, tmp_path, capsys):
        config = tmp_path / "bad.yaml"
        config.write_text("rules: [unclosed\n")
        assert main(["check", str(tmp_path), "-c", str(config)]) == 1
        assert "Error:" in capsys.readouterr().err
