"""Tests for the contractgen command line."""
import argparse
import json

import pytest

from contractgen.cli import cmd_rules, main


VEHICLE = """\
contract Vehicle : VehicleBase {
  bool CanFly() const { return false; }
  double SetSpeed(double speed) = required;
  using fuel_type = 0;
};
"""


@pytest.fixture(autouse=True)
def no_user_config(tmp_path, monkeypatch):
    monkeypatch.setenv("CONTRACTGEN_CONFIG", str(tmp_path / "absent.toml"))


@pytest.fixture
def vehicle_file(tmp_path):
    path = tmp_path / "vehicle.contract"
    path.write_text(VEHICLE)
    return path


class TestParseCommand:
    def test_prints_tree_as_json(self, vehicle_file, capsys):
        main(["parse", str(vehicle_file)])
        data = json.loads(capsys.readouterr().out)
        contract = data["children"][0]
        assert contract["name"] == "Vehicle"
        assert [c["node"] for c in contract["children"]] == [
            "MethodDecl", "MethodDecl", "AssociatedType",
        ]
        assert contract["children"][1]["is_required"] is True

    def test_malformed_input_aborts(self, tmp_path, capsys):
        path = tmp_path / "broken.contract"
        path.write_text("contract Vehicle VehicleBase { };")
        with pytest.raises(SystemExit) as exc:
            main(["parse", str(path)])
        assert exc.value.code == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "error: token 2 (L1:18)" in captured.err
        assert "Aborting." in captured.err

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["parse", str(tmp_path / "nope.contract")])
        assert exc.value.code == 1
        assert "cannot read" in capsys.readouterr().err

    def test_undecodable_file(self, tmp_path, capsys):
        path = tmp_path / "binary.contract"
        path.write_bytes(b"contract Vehicle : VehicleBase { int \xff\xfe; };")
        with pytest.raises(SystemExit) as exc:
            main(["parse", str(path)])
        assert exc.value.code == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert f"error: cannot decode {path}" in captured.err

    def test_debug_trace_goes_to_stderr(self, vehicle_file, capsys):
        main(["parse", str(vehicle_file), "--debug"])
        captured = capsys.readouterr()
        assert "DEBUG: defining contract 'Vehicle'" in captured.err
        json.loads(captured.out)

    def test_config_file(self, tmp_path, capsys):
        config = tmp_path / "concept.toml"
        config.write_text('[parser]\ncontract_keyword = "concept"\n')
        source = tmp_path / "animal.contract"
        source.write_text("concept Animal : AnimalBase { void Speak() = required; };")
        main(["parse", str(source), "--config", str(config)])
        data = json.loads(capsys.readouterr().out)
        assert data["children"][0]["name"] == "Animal"

    def test_bad_config_file(self, tmp_path, vehicle_file, capsys):
        config = tmp_path / "bad.toml"
        config.write_text('[parser]\ndebug = 3\n')
        with pytest.raises(SystemExit):
            main(["parse", str(vehicle_file), "--config", str(config)])
        assert "must be bool" in capsys.readouterr().err


class TestTokensCommand:
    def test_dump(self, vehicle_file, capsys):
        main(["tokens", str(vehicle_file)])
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == '0: ID : "contract"'
        assert lines[2] == '2: Other : ":"'
        assert lines[-1] == '30: Other : ";"'


class TestRulesCommand:
    def test_lists_rules(self, capsys):
        cmd_rules(argparse.Namespace())
        out = capsys.readouterr().out
        assert "Whitespace" in out
        assert "Comment" in out
        assert "Other" in out


class TestInitConfigCommand:
    def test_writes_defaults(self, tmp_path, capsys):
        path = tmp_path / "contractgen.toml"
        main(["init-config", str(path)])
        assert "Wrote" in capsys.readouterr().out
        assert 'contract_keyword = "contract"' in path.read_text()

    def test_refuses_to_overwrite(self, tmp_path, capsys):
        path = tmp_path / "contractgen.toml"
        path.write_text("# mine\n")
        with pytest.raises(SystemExit):
            main(["init-config", str(path)])
        assert path.read_text() == "# mine\n"
        main(["init-config", str(path), "--force"])
        assert "[parser]" in path.read_text()
