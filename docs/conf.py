"""Sphinx settings for the impulse_filters API reference."""

from __future__ import annotations

import importlib.metadata
import sys
from pathlib import Path

# Build straight from the source tree, installed or not
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

project = "impulse_filters"
author = "impulse_filters developers"
copyright = f"2025, {author}"  # noqa: A001

try:
    release = importlib.metadata.version("impulse-filters")
except importlib.metadata.PackageNotFoundError:
    release = "0.1.0"
version = release

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.autosummary",
    "sphinx.ext.napoleon",
    "sphinx.ext.intersphinx",
    "sphinx.ext.mathjax",
    "sphinx_autodoc_typehints",
    "myst_parser",
]

autosummary_generate = True
autodoc_member_order = "bysource"
autodoc_default_options = {"members": True, "show-inheritance": True}
autodoc_typehints = "description"
# The numba kernels are private; mocking keeps the build free of JIT compilation
autodoc_mock_imports = ["numba"]

napoleon_google_docstring = True
napoleon_numpy_docstring = False

exclude_patterns = ["_build"]

html_theme = "furo"
html_title = "impulse_filters"

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "numpy": ("https://numpy.org/doc/stable/", None),
    "pandas": ("https://pandas.pydata.org/docs/", None),
}

myst_enable_extensions = ["colon_fence"]
