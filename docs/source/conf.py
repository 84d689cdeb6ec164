# Sphinx configuration for the artoo emitter API reference.

import os
import sys

sys.path.insert(0, os.path.abspath("../.."))

project = "artoo"
copyright = "2025, artoo contributors"
author = "artoo contributors"
release = "0.3.2"

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.intersphinx",
    "sphinx_immaterial",
]

html_theme = "sphinx_immaterial"
html_title = "artoo emitter"
html_theme_options = {
    "font": False,
    "features": ["search.highlight", "toc.follow"],
}

# Docstrings are Google style throughout
napoleon_google_docstring = True
napoleon_numpy_docstring = False
napoleon_include_init_with_doc = True

autodoc_default_options = {
    "members": True,
    "member-order": "bysource",
    "exclude-members": "model_config",
}
autodoc_typehints = "description"

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "pydantic": ("https://docs.pydantic.dev/latest", None),
}
