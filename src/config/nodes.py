"""
Node override loading

Reads {node kind: action keyword} overrides from a YAML file and from
"Kind=keyword" command-line entries. Values are kept as loose strings;
NodeSettings.mapping_translate() decides which of them are meaningful.

Example nodes.yaml:
    Code: default
    FencedCodeBlock: default
    AutoLink: ignore
"""

import yaml
from pathlib import Path
from typing import Any, Dict, Iterable


class NodesFileError(Exception):
    """Raised when node overrides cannot be loaded"""
    pass


def nodesFile_load(path: Path) -> Dict[str, str]:
    """
    Load node overrides from a YAML mapping.

    Args:
        path: YAML file path

    Returns:
        {kind name: keyword}; an empty file gives an empty mapping

    Raises:
        NodesFileError: If the file is unreadable, is not valid YAML,
                        or does not contain a mapping
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            config: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise NodesFileError(f"Failed to parse {path}: {e}")
    except OSError as e:
        raise NodesFileError(f"Failed to load {path}: {e}")

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise NodesFileError(
            f"{path} must contain a mapping of node kinds to actions, "
            f"got {type(config).__name__}"
        )

    return {str(name): str(keyword) for name, keyword in config.items()}


def nodeAssignments_parse(entries: Iterable[str]) -> Dict[str, str]:
    """
    Parse "Kind=keyword" command-line entries.

    Later entries win over earlier ones.

    Args:
        entries: Strings such as "Code=default"

    Returns:
        {kind name: keyword}

    Raises:
        NodesFileError: If an entry has no '=' or an empty side

    Example:
        >>> nodeAssignments_parse(["Code=default", "AutoLink=ignore"])
        {'Code': 'default', 'AutoLink': 'ignore'}
    """
    assignments: Dict[str, str] = {}
    for entry in entries:
        name, sep, keyword = entry.partition('=')
        name, keyword = name.strip(), keyword.strip()
        if not sep or not name or not keyword:
            raise NodesFileError(f"Expected Kind=keyword, got '{entry}'")
        assignments[name] = keyword
    return assignments
