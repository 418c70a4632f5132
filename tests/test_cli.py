"""
Tests for the tracespec command-line interface.

Tests argument parsing, config layering and exit codes of main().
"""

import json

import pytest
import yaml

from tracespec.cli import build_config, main, parse_args


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ("TRACESPEC_LOG_LEVEL", "TRACESPEC_OUTPUT_FORMAT", "TRACESPEC_MAX_WORKERS",
                 "TRACESPEC_HOIST_SCHEMAS", "TRACESPEC_EXTRA_HEADERS"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def capture_file(tmp_path):
    path = tmp_path / "session.json"
    path.write_text(json.dumps({"requests": [
        {
            "method": "GET",
            "url": "https://api.example.com/users/1",
            "req_headers": {"Accept": "application/json"},
            "req_body": "",
            "status": 200,
            "resp_headers": {"Content-Type": "application/json"},
            "resp_body": '{"id": 1, "name": "Ann"}',
        },
        {
            "method": "GET",
            "url": "https://api.example.com/users/2",
            "req_headers": {},
            "req_body": "",
            "status": 200,
            "resp_headers": {"Content-Type": "application/json"},
            "resp_body": "{oops",
        },
    ]}), encoding="utf-8")
    return path


class TestParseArgs:
    """Test suite for parse_args() and build_config()."""

    def test_defaults(self):
        """Test default arguments."""
        args = parse_args(["session.json"])

        assert args.input == "session.json"
        assert args.output == ""
        assert args.output_format is None
        assert args.workers is None
        assert args.no_hoist is False

    def test_verbose_and_quiet_exclusive(self):
        """Test --verbose and --quiet cannot be combined."""
        with pytest.raises(SystemExit):
            parse_args(["session.json", "--verbose", "--quiet"])

    def test_cli_overrides_config_file(self, tmp_path, monkeypatch):
        """Test flags win over environment, which wins over the file."""
        config_path = tmp_path / "tracespec.yaml"
        config_path.write_text("analysis:\n  max_workers: 2\n  output_format: json\n", encoding="utf-8")
        monkeypatch.setenv("TRACESPEC_MAX_WORKERS", "3")

        config = build_config(parse_args([
            "session.json", "--config", str(config_path), "--format", "yaml", "--no-hoist", "--quiet"
        ]))

        assert config.max_workers == 3
        assert config.output_format == "yaml"
        assert config.hoist_schemas is False
        assert config.log_level == "error"

    def test_workers_flag(self):
        """Test --workers overrides the default."""
        assert build_config(parse_args(["session.json", "--workers", "4"])).max_workers == 4


class TestMain:
    """Test suite for main()."""

    def test_writes_report(self, tmp_path, capture_file, capsys):
        """Test a successful run writes the report and warns about skipped bodies."""
        output = tmp_path / "out" / "api.json"

        exit_code = main([str(capture_file), "-o", str(output), "--format", "json"])

        assert exit_code == 0
        report = json.loads(output.read_text(encoding="utf-8"))
        assert report['endpoints'][0]['path'] == "/users/{id}"
        assert report['summary']['skipped_bodies'] == 1

        captured = capsys.readouterr()
        assert "✓ Exported 1 endpoints" in captured.out
        assert "Skipped 0 records and 1 bodies" in captured.err

    def test_prints_report(self, capture_file, capsys):
        """Test the report goes to stdout without --output."""
        exit_code = main([str(capture_file)])

        assert exit_code == 0
        report = yaml.safe_load(capsys.readouterr().out)
        assert report['summary']['endpoints'] == 1

    def test_missing_input(self, tmp_path, capsys):
        """Test a missing input file fails with exit code 1."""
        exit_code = main([str(tmp_path / "missing.json")])

        assert exit_code == 1
        assert "❌ Could not load" in capsys.readouterr().err

    def test_empty_capture(self, tmp_path, capsys):
        """Test an empty capture log fails."""
        path = tmp_path / "empty.json"
        path.write_text("[]", encoding="utf-8")

        assert main([str(path)]) == 1
        assert "No requests found" in capsys.readouterr().err

    def test_normalization_failure(self, tmp_path, capsys):
        """Test a mostly-broken capture fails with exit code 1."""
        path = tmp_path / "broken.json"
        path.write_text(json.dumps([
            {"method": "GET", "url": "not a url"},
            {"method": "GET", "url": "also bad"},
        ]), encoding="utf-8")

        assert main([str(path)]) == 1
        assert "❌ Analysis failed" in capsys.readouterr().err

    def test_invalid_config(self, tmp_path, capture_file, capsys):
        """Test invalid configuration fails with exit code 2."""
        config_path = tmp_path / "bad.yaml"
        config_path.write_text("max_workers: 0\n", encoding="utf-8")

        assert main([str(capture_file), "--config", str(config_path)]) == 2
        assert "❌ Invalid configuration" in capsys.readouterr().err

    @pytest.mark.parametrize("content", [
        "analysis: [unclosed\n",
        "analysis:\n  max_workers: four\n",
    ])
    def test_malformed_config(self, tmp_path, capture_file, capsys, content):
        """Test broken YAML and mistyped settings fail with exit code 2."""
        config_path = tmp_path / "broken.yaml"
        config_path.write_text(content, encoding="utf-8")

        assert main([str(capture_file), "--config", str(config_path)]) == 2
        assert "❌ Invalid configuration" in capsys.readouterr().err
