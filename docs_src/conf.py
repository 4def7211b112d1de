"""Sphinx configuration for the cuecore-backup documentation."""

from __future__ import annotations

import sys
from pathlib import Path
import tomllib

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

project = "cuecore-backup"
author = "cuecore-backup contributors"
try:
    with (PROJECT_ROOT / "pyproject.toml").open("rb") as fh:
        release = tomllib.load(fh)["project"]["version"]
except (OSError, KeyError, tomllib.TOMLDecodeError):
    release = "0.0.0"

extensions = [
    "myst_parser",
    "sphinx.ext.autodoc",
    "sphinx.ext.intersphinx",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
]

root_doc = "index"
exclude_patterns = ["_build"]

source_suffix = {".md": "markdown"}
myst_enable_extensions = ["colon_fence"]
myst_heading_anchors = 2

intersphinx_mapping = {"python": ("https://docs.python.org/3", None)}

autodoc_default_options = {"member-order": "bysource"}
autodoc_typehints = "description"

html_theme = "furo"
html_title = "cuecore-backup"
