"""
JSON serialization for trees.
"""

import json
from pathlib import Path
from typing import Union
from ..core.tree import Tree

SCHEMA_VERSION = "1.0"


def save_json(
    tree: Tree,
    filepath: Union[str, Path],
    indent: int = 2,
) -> None:
    """
    Save a tree, arena included, to a JSON file.

    Parameters
    ----------
    tree : Tree
        Tree to save
    filepath : str or Path
        Output file path
    indent : int
        JSON indentation level

    Example
    -------
    >>> from cco_lib import save_json
    >>> save_json(tree, "cco-tree.json")
    """
    filepath = Path(filepath)

    data = {"schema_version": SCHEMA_VERSION}
    data.update(tree.to_dict())

    with open(filepath, 'w') as f:
        json.dump(data, f, indent=indent)


def load_json(filepath: Union[str, Path]) -> Tree:
    """
    Load a tree from a JSON file written by ``save_json``.

    Parameters
    ----------
    filepath : str or Path
        Input file path

    Returns
    -------
    tree : Tree
        Loaded tree

    Example
    -------
    >>> from cco_lib import load_json
    >>> tree = load_json("cco-tree.json")
    """
    filepath = Path(filepath)

    with open(filepath, 'r') as f:
        data = json.load(f)

    schema_version = data.get("schema_version", SCHEMA_VERSION)
    if schema_version != SCHEMA_VERSION:
        raise ValueError(f"Unsupported schema version: {schema_version}")

    return Tree.from_dict(data)
