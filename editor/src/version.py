"""Application version module.

In development: derives version from the VERSION file + git commit count.
In frozen builds: uses _BAKED_VERSION written by the build script.
"""

import subprocess
from pathlib import Path

# Overwritten by the build script; stays None in development.
_BAKED_VERSION = None

# VERSION file is at project root (editor/src/version.py -> ../../VERSION)
VERSION_FILE = Path(__file__).resolve().parent.parent.parent / "VERSION"


def get_version() -> str:
    """Get the version string (e.g. '0.1.12')."""
    if _BAKED_VERSION is not None:
        return _BAKED_VERSION
    return f"{read_major_minor()}.{_commit_count()}"


def read_major_minor(version_file: Path = VERSION_FILE) -> str:
    try:
        return version_file.read_text().strip() or "0.0"
    except FileNotFoundError:
        return "0.0"


def _commit_count() -> str:
    """Commits since the last tag, else total commits, else '0'."""
    commands = (
        ['git', 'describe', '--tags', '--long'],
        ['git', 'rev-list', '--count', 'HEAD'],
    )
    for command in commands:
        try:
            result = subprocess.run(
                command, capture_output=True, text=True, check=False,
                cwd=str(VERSION_FILE.parent),
            )
        except FileNotFoundError:
            return "0"  # git not installed
        if result.returncode != 0:
            continue
        output = result.stdout.strip()
        if command[1] == 'describe':
            # v0.1-5-gabcdef -> '5'
            parts = output.rsplit('-', 2)
            if len(parts) == 3:
                return parts[1]
        elif output.isdigit():
            return output
    return "0"
