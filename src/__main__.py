#!/usr/bin/env python3
"""
annotext - Markdown to annotated plain text for grammar checking

Converts a Markdown document into the plain text a grammar checker reads,
plus a run map that traces every plain-text character back to the
Markdown source so diagnostics can be reported at source positions.

As an aside, this codebase leverages the ChRIS "plugin" concept/pattern as
general purpose python app development framework.

Philosophy:
    - Line-preserving: plain-text line N is source line N
    - Prose only: code, math and markup never reach the checker as text
    - Traceable: every plain character maps back to a source offset
    - Configurable: each node kind can be shown, dropped or replaced

Usage:
    annotext inputdir/ outputdir/ --inputFile README.md

    The plain text is written to outputdir/<stem>.txt and the run map to
    outputdir/<stem>.map.json.

Examples:
    # Basic conversion
    annotext . output/ --inputFile README.md

    # Show inline code and fenced blocks as text
    annotext . output/ --inputFile README.md --node Code=default --node FencedCodeBlock=default

    # Overrides from a YAML file, into a subdirectory
    annotext . output/ --inputFile notes.md --nodesFile nodes.yaml --outputSubdir checked/

    # Verbose output
    annotext . output/ --inputFile README.md -vv
"""

import sys
import json
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter

from chris_plugin import chris_plugin
from .lib import Parser, AnnotatedTextBuilder, __version__, LOG, state_connectToLogger
from .config import NodesFileError, nodesFile_load, nodeAssignments_parse
from .models import ExtensionCategory, ProgramState, pipeline


DISPLAY_TITLE = r"""
                          _            _
   __ _ _ __  _ __   ___ | |_ _____  _| |_
  / _` | '_ \| '_ \ / _ \| __/ _ \ \/ / __|
 | (_| | | | | | | | (_) | ||  __/>  <| |_
  \__,_|_| |_|_| |_|\___/ \__\___/_/\_\\__|

  Markdown to annotated plain text
"""

# Define CLI arguments
parser = ArgumentParser(
    description="annotext - Markdown to annotated plain text for grammar checking",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--inputFile", required=True, type=str, help="Input Markdown file (relative to inputdir)"
)

parser.add_argument(
    "--node",
    action="append",
    default=None,
    type=str,
    help="Node override Kind=keyword (repeatable), e.g. Code=default",
)

parser.add_argument(
    "--nodesFile",
    default=None,
    type=str,
    help="YAML file mapping node kinds to action keywords (relative to inputdir)",
)

parser.add_argument(
    "--outputSubdir",
    default=".",
    type=str,
    help="Subdirectory within outputdir for the plain text and run map",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate environment and resolve all file paths.

    Verifies that the input file and the optional overrides file exist,
    then creates the output directory structure.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with added fields:
            - inputSourceFile: Resolved path to the Markdown input file
            - nodesConfigFile: Resolved path to the YAML overrides, if any
            - textOutputdir: Created output directory path
            - envOK: True if environment is valid

    Exits:
        1 if the input file or the overrides file is not found
    """

    state = inputstate.copy()

    if state.verbosity >= 2:
        LOG(DISPLAY_TITLE, level=2)

    LOG("Checking environment...", level=2)

    input_file = state.inputdir / state.inputFile

    if not input_file.exists():
        print(f"Error: Input file not found: {input_file}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    state.inputSourceFile = input_file
    LOG(f"Input file: {input_file}", level=2)

    if state.nodesFile:
        nodes_file = Path(state.nodesFile)
        if not nodes_file.is_absolute():
            nodes_file = state.inputdir / nodes_file
        if not nodes_file.exists():
            print(f"Error: Nodes file not found: {nodes_file}", file=sys.stderr)
            state.envOK = False
            sys.exit(1)
        state.nodesConfigFile = nodes_file
        LOG(f"Nodes file: {nodes_file}", level=2)

    state.textOutputdir = state.outputdir / state.outputSubdir
    state.textOutputdir.mkdir(parents=True, exist_ok=True)
    LOG(f"Output directory: {state.textOutputdir}", level=2)

    state.envOK = True
    return state


def source_parse(inputstate: ProgramState) -> ProgramState:
    """
    Read and parse the Markdown source into a syntax tree.

    The file is read with newline translation disabled so that the spans
    of the tree index the exact bytes-as-text of the document.

    Args:
        inputstate: Program state with inputSourceFile path set

    Returns:
        ProgramState with added fields:
            - sourceText: The document text
            - parsedSource: Document SyntaxNode

    Exits:
        1 if the file cannot be read
    """

    state = inputstate.copy()

    LOG("Reading source file...", level=1)

    try:
        with open(state.inputSourceFile, "r", encoding="utf-8", newline="") as f:
            state.sourceText = f.read()
        LOG(f"Read {len(state.sourceText)} characters from {state.inputSourceFile.name}", level=2)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading input file: {e}", file=sys.stderr)
        sys.exit(1)

    LOG("Parsing Markdown...", level=1)
    markdown_parser = Parser(state.sourceText, debug=(state.verbosity >= 3))
    state.parsedSource = markdown_parser.parse()
    return state


def text_annotate(inputstate: ProgramState) -> ProgramState:
    """
    Build the annotated text from the syntax tree.

    Overrides from --nodesFile are applied first, then --node entries on
    top of them.

    Args:
        inputstate: Program state with parsedSource

    Returns:
        ProgramState with added fields:
            - nodeOverrides: Merged {Kind: keyword} overrides
            - annotatedText: AnnotatedText result

    Exits:
        1 if parsedSource is missing or the overrides cannot be loaded
    """

    state = inputstate.copy()

    if state.parsedSource is None:
        print("Error: No parsed source available", file=sys.stderr)
        sys.exit(1)

    try:
        overrides = {}
        if state.nodesConfigFile is not None:
            overrides.update(nodesFile_load(state.nodesConfigFile))
        overrides.update(nodeAssignments_parse(state.node))
    except NodesFileError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    state.nodeOverrides = overrides
    if overrides:
        LOG(f"Node overrides: {overrides}", level=2)

    LOG("Building annotated text...", level=1)
    builder = AnnotatedTextBuilder(overrides)
    for category in ExtensionCategory:
        for spec in builder.registry.extensions_listByCategory(category):
            LOG(f"Extension {spec.name} ({category.value}): {spec.description}", level=3)

    state.annotatedText = builder.build(state.parsedSource, state.sourceText)
    return state


def results_write(inputstate: ProgramState) -> ProgramState:
    """
    Write the plain text and its run map.

    Args:
        inputstate: Program state with annotatedText

    Returns:
        ProgramState with added field:
            - writeResult: Dict containing:
                - text_file: str (path to <stem>.txt)
                - map_file: str (path to <stem>.map.json)
                - run_count: int (number of runs in the map)

    Exits:
        1 if annotatedText is missing or the files cannot be written
    """

    state = inputstate.copy()

    if state.annotatedText is None:
        print("Error: No annotated text available", file=sys.stderr)
        sys.exit(1)

    stem = Path(state.inputFile).stem
    text_file = state.textOutputdir / f"{stem}.txt"
    map_file = state.textOutputdir / f"{stem}.map.json"

    try:
        with open(text_file, "w", encoding="utf-8", newline="") as f:
            f.write(state.annotatedText.plain_text)
        with open(map_file, "w", encoding="utf-8") as f:
            json.dump(state.annotatedText.dict_export(), f, indent=2, ensure_ascii=False)
    except OSError as e:
        print(f"Error writing output: {e}", file=sys.stderr)
        sys.exit(1)

    state.writeResult = {
        "text_file": str(text_file),
        "map_file": str(map_file),
        "run_count": len(state.annotatedText.runs),
    }
    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Display conversion results to user.

    Args:
        inputstate: Program state with writeResult populated

    Returns:
        ProgramState unchanged (terminal pipeline stage)

    Exits:
        1 if writeResult is None
    """
    state: ProgramState = inputstate.copy()
    if not state.writeResult:
        print("Error: Conversion failed", file=sys.stderr)
        sys.exit(1)

    LOG("\n✓ Conversion successful!", level=1)
    LOG(f"  Text: {state.writeResult['text_file']}", level=1)
    LOG(f"  Map:  {state.writeResult['map_file']}", level=1)
    LOG(f"  Runs: {state.writeResult['run_count']}", level=1)
    return state


@chris_plugin(
    parser=parser,
    title="annotext - Markdown to annotated plain text",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - convert a Markdown document to annotated plain text.

    Orchestrates the full conversion pipeline:
        1. env_check: Validate paths and environment
        2. source_parse: Read and parse the Markdown file
        3. text_annotate: Build plain text and run map
        4. results_write: Write <stem>.txt and <stem>.map.json
        5. results_report: Display results to user

    Args:
        options: CLI arguments from argparse
            - inputFile: str - Input Markdown filename
            - node: Optional[List[str]] - Kind=keyword overrides
            - nodesFile: Optional[str] - YAML overrides file
            - outputSubdir: str - Output subdirectory name
            - verbosity: int - Logging verbosity level (1-3)
        inputdir: Directory containing the Markdown source
        outputdir: Directory where the results will be written

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """

    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    pipeline(state, env_check, source_parse, text_annotate, results_write, results_report)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
