"""Tests for fixedwidth/__main__.py - command line interface."""

import logging
from textwrap import dedent

import pandas as pd
import pytest

import fixedwidth.__main__ as cli

MULTI_LAYOUT = dedent(
    """
    writer:
      record_separator: lf
    discriminator:
      start: 0
      length: 1
    record_types:
      - type: A
        fields: [1, 6, 10]
      - type: B
        fields: [1, 1, 1, 1]
    """
)

SINGLE_LAYOUT = dedent(
    """
    writer:
      record_separator: lf
    record_types:
      - columns: [code, qty]
        fields:
          - 2
          - {width: 3, alignment: end, padding: "0"}
    """
)

MULTI_DATA = b"A1234  hello     \nB1C2\nA9     world     \n"


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    """Keep the CLI from replacing pytest's log handlers."""
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)


@pytest.fixture
def multi_layout(tmp_path):
    path = tmp_path / "multi.yaml"
    path.write_text(MULTI_LAYOUT)
    return path


@pytest.fixture
def single_layout(tmp_path):
    path = tmp_path / "single.yaml"
    path.write_text(SINGLE_LAYOUT)
    return path


@pytest.fixture
def multi_data(tmp_path):
    path = tmp_path / "data.txt"
    path.write_bytes(MULTI_DATA)
    return path


class TestCheckCommand:
    def test_valid_layout(self, multi_layout, capsys):
        assert cli.main(["check", str(multi_layout)]) == 0

        out = capsys.readouterr().out
        assert "Discriminator: start=0 length=1 strict=False" in out
        assert "1, 6, 10" in out
        assert "RESULT: PASSED - Layout is valid" in out

    def test_invalid_layout(self, tmp_path, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text("record_types:\n  - fields: [0]\n")

        assert cli.main(["check", str(path)]) == 1
        assert "ERROR:" in capsys.readouterr().err

    def test_missing_layout(self, tmp_path, capsys):
        assert cli.main(["check", str(tmp_path / "missing.yaml")]) == 1
        assert "Layout file not found" in capsys.readouterr().err


class TestReadCommand:
    def test_single_layout_to_stdout(self, single_layout, tmp_path, capsys):
        data = tmp_path / "data.txt"
        data.write_text("ab001\ncd022\n")

        assert cli.main(["read", str(single_layout), str(data)]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines == ["code,qty", "ab,001", "cd,022"]

    def test_multi_layout_long_form(self, multi_layout, multi_data, capsys):
        assert cli.main(["read", str(multi_layout), str(multi_data)]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines == [
            "record_type,field_0,field_1,field_2,field_3",
            "A,A,1234,hello,",
            "B,B,1,C,2",
            "A,A,9,world,",
        ]

    def test_record_type_filter(self, multi_layout, multi_data, tmp_path):
        output = tmp_path / "b.csv"

        assert cli.main(
            ["read", str(multi_layout), str(multi_data), "--record-type", "B", "-o", str(output)]
        ) == 0

        df = pd.read_csv(output, dtype=str)
        assert list(df.columns) == ["field_0", "field_1", "field_2", "field_3"]
        assert df.values.tolist() == [["B", "1", "C", "2"]]

    def test_parquet_output(self, multi_layout, multi_data, tmp_path):
        output = tmp_path / "records.parquet"

        assert cli.main(["read", str(multi_layout), str(multi_data), "--output", str(output)]) == 0

        df = pd.read_parquet(output)
        assert df["record_type"].tolist() == ["A", "B", "A"]
        assert df["field_2"].tolist() == ["hello", "C", "world"]
        assert df["field_3"].isna().tolist() == [True, False, True]

    def test_unsupported_output(self, multi_layout, multi_data, tmp_path, capsys):
        output = tmp_path / "records.json"

        assert cli.main(["read", str(multi_layout), str(multi_data), "-o", str(output)]) == 1
        assert "Unsupported output format '.json'" in capsys.readouterr().err
        assert not output.exists()

    def test_malformed_input(self, single_layout, tmp_path, capsys):
        data = tmp_path / "data.txt"
        data.write_text("ab001\ncd0")

        assert cli.main(["read", str(single_layout), str(data)]) == 1
        assert "Input ended part way through a record" in capsys.readouterr().err

    def test_undefined_record_type(self, multi_layout, multi_data, capsys):
        assert cli.main(["read", str(multi_layout), str(multi_data), "--record-type", "Z"]) == 1
        assert "'Z' is not defined" in capsys.readouterr().err

    def test_missing_env_file_warns(self, single_layout, tmp_path, caplog):
        data = tmp_path / "data.txt"
        data.write_text("ab001\n")

        with caplog.at_level(logging.WARNING):
            code = cli.main(
                ["--env-file", str(tmp_path / "missing.env"), "read", str(single_layout), str(data)]
            )

        assert code == 0
        assert "No environment variables loaded" in caplog.text


class TestWriteCommand:
    def test_long_form_round_trip(self, multi_layout, multi_data, tmp_path):
        csv_path = tmp_path / "records.csv"
        output = tmp_path / "out.txt"

        assert cli.main(["read", str(multi_layout), str(multi_data), "-o", str(csv_path)]) == 0
        assert cli.main(["write", str(multi_layout), str(csv_path), str(output)]) == 0

        assert output.read_bytes() == MULTI_DATA

    def test_single_layout_selects_columns(self, single_layout, tmp_path):
        csv_path = tmp_path / "records.csv"
        csv_path.write_text("qty,note,code\n7,ignored,ab\n42,,cd\n")
        output = tmp_path / "out.txt"

        assert cli.main(["write", str(single_layout), str(csv_path), str(output)]) == 0

        assert output.read_bytes() == b"ab007\ncd042\n"

    def test_long_values_are_truncated(self, single_layout, tmp_path):
        csv_path = tmp_path / "records.csv"
        csv_path.write_text("code,qty\nabc,12345\n")
        output = tmp_path / "out.txt"

        assert cli.main(["write", str(single_layout), str(csv_path), str(output)]) == 0

        assert output.read_bytes() == b"ab123\n"

    def test_field_count_mismatch(self, single_layout, tmp_path, capsys):
        csv_path = tmp_path / "records.csv"
        csv_path.write_text("a,b,c\n1,2,3\n")

        assert cli.main(["write", str(single_layout), str(csv_path), str(tmp_path / "out.txt")]) == 1
        assert "does not match" in capsys.readouterr().err


class TestParser:
    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])

    def test_global_flags(self):
        args = cli.build_parser().parse_args(["-v", "--json-log", "check", "layout.yaml"])

        assert args.verbose and args.json_log
        assert args.handler is cli.check_command
