"""
End-to-end pipeline tests

Tests the full pipeline: Markdown file → env_check → source_parse →
text_annotate → results_write, plus the node override loaders.
"""

import json
import tempfile
from argparse import Namespace
from pathlib import Path

import pytest
from loguru import logger

from annotext.__main__ import env_check, source_parse, text_annotate, results_write, results_report
from annotext.config.nodes import NodesFileError, nodesFile_load, nodeAssignments_parse
from annotext.lib.log import state_connectToLogger
from annotext.models.state import ProgramState, pipeline


SOURCE = (
    "# Notes\r\n"
    "\r\n"
    "Run `make` first.\r\n"
)


def state_make(inputdir: Path, outputdir: Path, **options) -> ProgramState:
    namespace = Namespace(
        inputFile=options.pop("inputFile", "notes.md"),
        node=options.pop("node", None),
        nodesFile=options.pop("nodesFile", None),
        outputSubdir=options.pop("outputSubdir", "."),
        verbosity=0,
    )
    return ProgramState.state_createFromNamespace(namespace, inputdir, outputdir)


class TestPipeline:
    """Test the conversion stages end to end"""

    def test_full_pipeline(self):
        """A Markdown file becomes a text file and a run map"""
        with tempfile.TemporaryDirectory() as tmpdir:
            inputdir = Path(tmpdir) / "in"
            outputdir = Path(tmpdir) / "out"
            inputdir.mkdir()
            (inputdir / "notes.md").write_bytes(SOURCE.encode("utf-8"))

            state = pipeline(
                state_make(inputdir, outputdir, outputSubdir="checked"),
                env_check,
                source_parse,
                text_annotate,
                results_write,
                results_report,
            )

            text_file = outputdir / "checked" / "notes.txt"
            map_file = outputdir / "checked" / "notes.map.json"
            assert state.writeResult["text_file"] == str(text_file)
            assert text_file.read_bytes().decode("utf-8") == "Notes\n\nRun Dummy0 first.\n"

            exported = json.loads(map_file.read_text(encoding="utf-8"))
            assert exported["plainText"] == "Notes\n\nRun Dummy0 first.\n"
            assert len(exported["runs"]) == state.writeResult["run_count"]

    def test_source_kept_verbatim(self):
        """CRLF line endings reach the parser untouched"""
        with tempfile.TemporaryDirectory() as tmpdir:
            inputdir = Path(tmpdir)
            (inputdir / "notes.md").write_bytes(SOURCE.encode("utf-8"))
            state = pipeline(state_make(inputdir, inputdir / "out"), env_check, source_parse)
            assert state.sourceText == SOURCE
            assert state.parsedSource.end == len(SOURCE)

    def test_node_overrides(self):
        """--node entries win over the nodes file"""
        with tempfile.TemporaryDirectory() as tmpdir:
            inputdir = Path(tmpdir)
            (inputdir / "notes.md").write_text("Run `make` first.\n", encoding="utf-8")
            (inputdir / "nodes.yaml").write_text("Code: ignore\nAutoLink: dummy\n", encoding="utf-8")

            state = pipeline(
                state_make(inputdir, inputdir / "out", node=["Code=default"], nodesFile="nodes.yaml"),
                env_check,
                source_parse,
                text_annotate,
            )
            assert state.nodeOverrides == {"Code": "default", "AutoLink": "dummy"}
            assert state.annotatedText.plain_text == "Run make first.\n"

    def test_extensions_listed_when_verbose(self):
        """-vvv lists the active dialect extensions"""
        with tempfile.TemporaryDirectory() as tmpdir:
            inputdir = Path(tmpdir)
            (inputdir / "notes.md").write_text("Text.\n", encoding="utf-8")
            state = pipeline(state_make(inputdir, inputdir / "out"), env_check, source_parse)
            state.verbosity = 3

            messages = []
            sink = logger.add(messages.append, format="{message}")
            state_connectToLogger(state)
            try:
                text_annotate(state)
            finally:
                logger.remove(sink)
                state_connectToLogger(None)

            listed = [str(message) for message in messages if str(message).startswith("Extension ")]
            assert any("definition-term (structural)" in message for message in listed)
            assert any("front-matter (metadata)" in message for message in listed)
            assert sum("math (math)" in message for message in listed) == 1

    def test_missing_input_exits(self):
        """A missing input file aborts with exit code 1"""
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(SystemExit) as excinfo:
                env_check(state_make(Path(tmpdir), Path(tmpdir) / "out", inputFile="absent.md"))
            assert excinfo.value.code == 1

    def test_missing_nodes_file_exits(self):
        """A missing nodes file aborts with exit code 1"""
        with tempfile.TemporaryDirectory() as tmpdir:
            inputdir = Path(tmpdir)
            (inputdir / "notes.md").write_text("Text.\n", encoding="utf-8")
            with pytest.raises(SystemExit) as excinfo:
                env_check(state_make(inputdir, inputdir / "out", nodesFile="absent.yaml"))
            assert excinfo.value.code == 1

    def test_malformed_node_entry_exits(self):
        """A --node entry without '=' aborts with exit code 1"""
        with tempfile.TemporaryDirectory() as tmpdir:
            inputdir = Path(tmpdir)
            (inputdir / "notes.md").write_text("Text.\n", encoding="utf-8")
            state = pipeline(
                state_make(inputdir, inputdir / "out", node=["Code"]),
                env_check,
                source_parse,
            )
            with pytest.raises(SystemExit) as excinfo:
                text_annotate(state)
            assert excinfo.value.code == 1


class TestNodesFile:
    """Test YAML override loading"""

    def test_load_mapping(self, tmp_path):
        """A YAML mapping loads as strings"""
        path = tmp_path / "nodes.yaml"
        path.write_text("Code: default\nFencedCodeBlock: ignore\n", encoding="utf-8")
        assert nodesFile_load(path) == {"Code": "default", "FencedCodeBlock": "ignore"}

    def test_empty_file(self, tmp_path):
        """An empty file means no overrides"""
        path = tmp_path / "nodes.yaml"
        path.write_text("", encoding="utf-8")
        assert nodesFile_load(path) == {}

    def test_not_a_mapping(self, tmp_path):
        """A YAML list is rejected"""
        path = tmp_path / "nodes.yaml"
        path.write_text("- Code\n- default\n", encoding="utf-8")
        with pytest.raises(NodesFileError):
            nodesFile_load(path)

    def test_invalid_yaml(self, tmp_path):
        """Broken YAML is reported as NodesFileError"""
        path = tmp_path / "nodes.yaml"
        path.write_text("Code: [default\n", encoding="utf-8")
        with pytest.raises(NodesFileError):
            nodesFile_load(path)

    def test_missing_file(self, tmp_path):
        """Unreadable files are reported as NodesFileError"""
        with pytest.raises(NodesFileError):
            nodesFile_load(tmp_path / "absent.yaml")

    def test_assignments(self):
        """Later command-line entries win"""
        assert nodeAssignments_parse(["Code=dummy", " Code = default "]) == {"Code": "default"}

    @pytest.mark.parametrize("entry", ["Code", "=default", "Code="])
    def test_bad_assignments(self, entry):
        """Entries need both a kind and a keyword"""
        with pytest.raises(NodesFileError):
            nodeAssignments_parse([entry])
