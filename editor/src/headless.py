"""Headless layer tree inspector: CLI entry point.

Reads a saved layer tree document (JSON from LayerTree.to_json()) and
prints its group outline the way the layers panel would show it, without
a canvas or a display.

Usage:
    python -m editor.src.headless <document.json> [--query TEXT] [--expand-all] [-v]

Examples:
    python -m editor.src.headless poster_layers.json
    python -m editor.src.headless poster_layers.json --query shadow
    python -m editor.src.headless poster_layers.json --expand-all
"""

import sys
import os
import argparse
import logging

# Add editor/src to path so imports work
_src_dir = os.path.dirname(os.path.abspath(__file__))
if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)


def format_outline(tree, query=None, expand_all=False, indent='  '):
    """Panel rows of tree as indented text lines.

    Args:
        tree: LayerTree to print.
        query: Optional name filter (case-insensitive substring).
        expand_all: Ignore collapsed groups.
        indent: Text repeated once per depth level.

    Returns:
        List of lines, one per row.
    """
    lines = []
    for row in tree.flatten(query=query, expand_all=expand_all):
        node = tree.get(row.id)
        # Queries force matching branches open
        is_open = node.expanded or expand_all or bool(query)
        marker = '[-]' if is_open else '[+]'
        flags = ' (locked)' if node.locked else ''
        lines.append(f"{indent * row.depth}{marker} {node.name}{flags}")
    return lines


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Print the group outline of a saved layer tree document.',
    )
    parser.add_argument(
        'input_file',
        help='Path to a layer tree JSON document.',
    )
    parser.add_argument(
        '-q', '--query',
        default=None,
        help='Only show groups whose name contains this text (and their ancestors).',
    )
    parser.add_argument(
        '-a', '--expand-all',
        action='store_true',
        help='Show children of collapsed groups too.',
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging.',
    )
    args = parser.parse_args(argv)

    # Logging
    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    input_path = os.path.abspath(args.input_file)
    if not os.path.isfile(input_path):
        print(f"Error: Input file not found: {input_path}")
        return 1

    from models.layer_tree import LayerTree

    with open(input_path, 'r', encoding='utf-8') as f:
        text = f.read()
    try:
        tree = LayerTree.from_json(text)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    lines = format_outline(tree, query=args.query, expand_all=args.expand_all)
    if not lines:
        print("No matching groups.")
        return 0
    for line in lines:
        print(line)
    return 0


if __name__ == '__main__':
    sys.exit(main())
