import json

from migration_scanner import cli

MODEL = """
source: Legacy.sln
projects:
  - path: src/LegacyApp/LegacyApp.csproj
    units:
      - path: src/LegacyApp/Native.cs
        root:
          kind: compilation_unit
          children:
            - kind: method_declaration
              name: Beep
              line: 4
              children:
                - kind: attribute
                  name: DllImport
                  line: 3
                  children:
                    - {kind: argument, value: user32.dll}
            - {kind: string_literal, value: "logs\\\\app\\\\out.log", line: 9}
      - path: src/LegacyApp/obj/Generated.cs
        root:
          kind: compilation_unit
          children:
            - {kind: string_literal, value: "D:\\\\build\\\\out", line: 2}
"""

CLEAN_MODEL = """
source: Clean.sln
projects:
  - path: src/Clean/Clean.csproj
    properties: {TargetFramework: net8.0}
    units:
      - path: src/Clean/Program.cs
        root:
          kind: compilation_unit
          children:
            - {kind: string_literal, value: data/temp.txt}
"""


def test_cli_generates_json_report(tmp_path, capsys):
    model_path = tmp_path / "model.yaml"
    model_path.write_text(MODEL, encoding="utf-8")
    output_path = tmp_path / "report.json"

    exit_code = cli.main(["--model", str(model_path), "--exclude", "/obj/", "--out", str(output_path)])

    captured = capsys.readouterr()
    assert "Migration Scan Summary" in captured.out
    assert "Running P/Invoke Detection... ok (1 findings" in captured.out
    assert exit_code == 2
    data = json.loads(output_path.read_text(encoding="utf-8"))
    assert data["summary"]["critical"] == 1
    assert data["summary"]["medium"] == 1
    assert data["unitsScanned"] == 2
    assert all("/obj/" not in finding["file"] for finding in data["findings"])
    assert data["passed"] is False


def test_cli_severity_cutoff_is_case_insensitive(tmp_path, capsys):
    model_path = tmp_path / "model.yaml"
    model_path.write_text(MODEL, encoding="utf-8")
    output_path = tmp_path / "report.json"

    cli.main(["--model", str(model_path), "--severity", "CRITICAL", "--out", str(output_path)])

    data = json.loads(output_path.read_text(encoding="utf-8"))
    assert [finding["ruleId"] for finding in data["findings"]] == ["WIN002"]
    assert data["effortDays"] == 5.0


def test_cli_passes_on_clean_model(tmp_path, capsys):
    model_path = tmp_path / "clean.yaml"
    model_path.write_text(CLEAN_MODEL, encoding="utf-8")

    exit_code = cli.main(["--model", str(model_path), "--concurrent"])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert "JSON Report" in captured.out
    assert '"passed": true' in captured.out


def test_cli_reports_fatal_load(tmp_path, capsys):
    exit_code = cli.main(["--model", str(tmp_path / "missing.yaml")])

    captured = capsys.readouterr()
    assert exit_code == cli.EXIT_FATAL_LOAD
    assert "Fatal: Snapshot not found" in captured.err
    assert "Migration Scan Summary" not in captured.out


def test_cli_reports_config_errors(tmp_path, capsys):
    config_path = tmp_path / "scanner.yaml"
    config_path.write_text("disabled_rules: [NOPE01]", encoding="utf-8")

    exit_code = cli.main(["--model", str(tmp_path / "missing.yaml"), "--config", str(config_path)])

    assert exit_code == cli.EXIT_CONFIG_ERROR
    assert "unknown rule ids" in capsys.readouterr().err
