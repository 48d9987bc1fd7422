"""Sphinx configuration for the Records Service documentation."""

from __future__ import annotations

import os
import sys
from datetime import datetime

DOCS_DIR = os.path.dirname(os.path.abspath(__file__))
ROOT_DIR = os.path.abspath(os.path.join(DOCS_DIR, ".."))
sys.path.insert(0, ROOT_DIR)

from records_service import __version__  # noqa: E402
from records_service.domain.kinds import CREATED_COLUMN, KINDS, OWNER_COLUMN  # noqa: E402

project = "Records Service"
author = "Records Team"
copyright = f"{datetime.now():%Y}, {author}"
release = __version__

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.intersphinx",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
    "sphinx_autodoc_typehints",
]

autodoc_typehints = "description"
autodoc_preserve_defaults = True
autodoc_member_order = "bysource"
autodoc_mock_imports = ["psycopg", "psycopg_pool", "bcrypt", "redis"]
napoleon_google_docstring = False
napoleon_numpy_docstring = True

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "psycopg": ("https://www.psycopg.org/psycopg3/docs/", None),
    "pydantic": ("https://docs.pydantic.dev/latest/", None),
}

exclude_patterns: list[str] = ["_build", "Thumbs.db", ".DS_Store"]

html_theme = "alabaster"


def kinds_table(kinds=KINDS) -> str:
    """Render the record kinds as an RST list-table: routes, table and columns."""
    lines = [
        ".. list-table::",
        "   :header-rows: 1",
        "   :widths: 15 25 20 40",
        "",
        "   * - Kind",
        "     - Routes",
        "     - Table",
        "     - Fields",
    ]
    for kind in kinds:
        primary, *aliases = kind.paths
        routes = f"``/api/{primary}``"
        if aliases:
            routes += " (legacy: " + ", ".join(f"``/api/{alias}``" for alias in aliases) + ")"
        fields = ", ".join(f"``{spec.name}`` ({spec.type})" for spec in kind.fields)
        lines.extend(
            [
                f"   * - {kind.label}",
                f"     - {routes}",
                f"     - ``{kind.table}``",
                f"     - {fields}",
            ]
        )
    return "\n".join(lines) + "\n"


def write_kinds_page(app=None) -> None:
    """Regenerate ``kinds.rst`` so the table never drifts from the registry."""
    page = [
        "Record kinds",
        "============",
        "",
        f"Every table also carries ``id``, ``{OWNER_COLUMN}`` (the owning account) and "
        f"``{CREATED_COLUMN}``. Blank numbers are stored as ``0`` and blank dates as ``NULL``.",
        "",
        kinds_table(),
    ]
    with open(os.path.join(DOCS_DIR, "kinds.rst"), "w", encoding="utf-8") as handle:
        handle.write("\n".join(page))


def setup(app):
    app.connect("builder-inited", write_kinds_page)
