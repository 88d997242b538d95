"""Sphinx configuration for pubsync documentation."""

project = "pubsync"
copyright = "2026, pubsync contributors"
version = "0.1.0"
release = "0.1.0"

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.intersphinx",
    "sphinx_click",
    "myst_parser",
]

html_theme = "furo"
html_title = "pubsync"

# Google-style docstrings only
napoleon_google_docstring = True
napoleon_numpy_docstring = False
napoleon_include_init_with_doc = True

autodoc_member_order = "bysource"
autodoc_typehints = "description"

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "pydantic": ("https://docs.pydantic.dev/latest/", None),
    "httpx": ("https://www.python-httpx.org/", None),
    "gspread": ("https://docs.gspread.org/en/latest/", None),
}

exclude_patterns = ["_build"]
source_suffix = {
    ".rst": "restructuredtext",
    ".md": "markdown",
}
