"""Tests for the descendants listing tool."""

import pandas as pd

import descendants as tool
from config import Layout
from snapshot import index_to_wire, write_json

INDEX = {"100": {"200", "201"}, "200": {"300"}}
BEST = {"100": "Foo", "200": "Bar", "201": "Baz"}


class TestFormatListing:
    """Tests for describe and format_listing."""

    def test_indented_listing(self) -> None:
        listing = tool.describe("100", INDEX, BEST)
        assert tool.format_listing(listing) == "\n".join([
            "100\tFoo",
            ">200\tBar",
            ">>300\t(no term)",
            ">201\tBaz",
        ])

    def test_plain_listing(self) -> None:
        listing = tool.describe("200", INDEX, BEST)
        assert tool.format_listing(listing, indent=False) == "200\tBar\n300\t(no term)"


class TestRun:
    """Tests for the interactive loop."""

    def test_loop_until_quit(self, capsys) -> None:
        answers = iter(["200", "n", "999", "q"])
        tool.run(INDEX, BEST, prompt=lambda _: next(answers))
        out = capsys.readouterr().out
        assert ">300\t(no term)" in out
        assert "\n300\t(no term)\n" in out
        assert "999 is not in the hierarchy." in out
        assert "BYE BYE" in out

    def test_end_of_input_exits(self, capsys) -> None:
        def prompt(_):
            raise EOFError

        tool.run(INDEX, BEST, prompt=prompt)
        assert "BYE BYE" in capsys.readouterr().out


class TestMain:
    """Tests for the command line entry point."""

    def test_single_root_with_csv_export(self, tmp_path, capsys) -> None:
        layout = Layout(tmp_path / "files")
        write_json(layout.best_defs_file, BEST)
        write_json(layout.index_file, index_to_wire(INDEX))
        out_csv = tmp_path / "out.csv"

        tool.main(["--files_dir", str(layout.files_dir), "--root", "100", "--out_csv", str(out_csv)])

        df = pd.read_csv(out_csv, dtype={"concept_id": str})
        assert df["concept_id"].tolist() == ["100", "200", "300", "201"]
        assert df["depth"].tolist() == [0, 1, 2, 1]
        assert ">>300" in capsys.readouterr().out


class TestLookup:
    """Tests for looking up a single code."""

    def test_described_code_without_links_is_listed_alone(self, capsys) -> None:
        listing = tool.lookup("500", INDEX, {**BEST, "500": "Retired concept"})
        assert listing == [("500", 0, "Retired concept")]
        assert "500\tRetired concept" in capsys.readouterr().out

    def test_unknown_code_is_reported(self, capsys) -> None:
        assert tool.lookup("999", INDEX, BEST) == []
        assert "999 is not in the hierarchy." in capsys.readouterr().out
