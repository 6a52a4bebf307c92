"""
Program state model and pipeline helper

Defines ProgramState dataclass for the functional pipeline pattern and
the pipeline() helper for composing transformation stages.
"""

from pathlib import Path
from argparse import Namespace
from typing import Any, Optional, Type, TypeVar, List, Dict, Callable
from dataclasses import dataclass, field


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    Central state container for the annotation pipeline (state bus pattern).

    This dataclass carries all program state through the functional pipeline,
    with each stage adding new fields as the conversion progresses.

    Pipeline stages and their state additions:
        - Initial: inputdir, outputdir, verbosity, inputFile, node, nodesFile, outputSubdir
        - env_check: inputSourceFile, nodesConfigFile, textOutputdir, envOK
        - source_parse: sourceText, parsedSource
        - text_annotate: nodeOverrides, annotatedText
        - results_write: writeResult
        - results_report: (no additions, terminal stage)

    Attributes:
        inputdir: Directory containing the Markdown source file
        outputdir: Base output directory for the plain text and run map
        verbosity: Logging verbosity level (1-3)
        inputFile: Input Markdown filename (relative to inputdir)
        node: "Kind=keyword" overrides given on the command line
        nodesFile: Optional YAML file with {Kind: keyword} overrides
        outputSubdir: Subdirectory within outputdir for output
        envOK: Environment validation passed
        inputSourceFile: Resolved path to the input file
        nodesConfigFile: Resolved path to the YAML overrides, if any
        textOutputdir: Final output directory (outputdir + outputSubdir)
        sourceText: Contents of the input file
        parsedSource: Syntax tree of the input file
        nodeOverrides: Merged {Kind: keyword} overrides
        annotatedText: Conversion result
        writeResult: Written files (text_file, map_file, run_count)
    """

    # CLI arguments
    inputdir: Optional[Path] = field(default=None)
    outputdir: Optional[Path] = field(default=None)
    verbosity: int = field(default=1)
    inputFile: str = field(default="")
    node: List[str] = field(default_factory=list)
    nodesFile: Optional[str] = field(default=None)
    outputSubdir: str = field(default=".")

    # Pipeline state
    envOK: bool = field(default=False)
    inputSourceFile: Path = field(default=Path("/"))
    nodesConfigFile: Optional[Path] = field(default=None)
    textOutputdir: Path = field(default=Path("/"))
    sourceText: str = field(default="")
    parsedSource: Optional[Any] = field(default=None)  # SyntaxNode at runtime
    nodeOverrides: Dict[str, str] = field(default_factory=dict)
    annotatedText: Optional[Any] = field(default=None)  # AnnotatedText at runtime
    writeResult: Optional[Dict] = field(default=None)

    @classmethod
    def state_createFromNamespace(
        cls: Type["ProgramState"], options: Namespace, inputdir: Path, outputdir: Path
    ) -> "ProgramState":
        """
        Create ProgramState from argparse Namespace and directory paths.

        Merges CLI options with explicitly provided directories to create
        the initial program state for the annotation pipeline.

        Args:
            options: Parsed CLI arguments (inputFile, node, etc.)
            inputdir: Directory containing source files
            outputdir: Directory for conversion output

        Returns:
            ProgramState instance with all CLI options as attributes
        """
        options_dict = vars(options)

        import dataclasses
        valid_fields = {f.name for f in dataclasses.fields(cls)}

        # Drop options that are not state fields, and unset list options
        filtered_options = {
            k: v for k, v in options_dict.items() if k in valid_fields and v is not None
        }

        merged_args = {**filtered_options, "inputdir": inputdir, "outputdir": outputdir}

        return cls(**merged_args)

    def copy(self: PS) -> PS:
        """
        Creates a shallow copy of the ProgramState instance.

        Returns:
            A new ProgramState instance.
        """
        return type(self)(**self.__dict__)


def pipeline(
    initial_state: ProgramState, *stages: Callable[[ProgramState], ProgramState]
) -> ProgramState:
    """
    Execute a functional pipeline of state transformations.

    Each stage is a function (ProgramState) -> ProgramState that receives
    the output of the previous stage and returns a new state.

    Args:
        initial_state: Starting ProgramState
        *stages: Variable number of stage functions to execute in order

    Returns:
        Final ProgramState after all transformations

    Example:
        final_state = pipeline(
            initial_state,
            env_check,
            source_parse,
            text_annotate,
            results_write,
            results_report
        )
    """
    from functools import reduce
    return reduce(lambda state, stage: stage(state), stages, initial_state)
