# Configuración de Sphinx para la documentación del backend de Comercio Exterior.
#
# Construcción:
#   pip install -e .[docs]
#   sphinx-build -b html docs/source docs/_build/html

import os
import sys

# --- El paquete ``comercio`` vive en backend/src (layout src) ---
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
sys.path.insert(0, os.path.join(ROOT_DIR, "backend", "src"))

from comercio import __version__  # noqa: E402

project = "Comercio Exterior"
author = "Equipo Comercio Exterior"
copyright = f"2025, {author}"
version = __version__
release = __version__
language = "es"

extensions = [
    "myst_parser",
    "sphinx.ext.autodoc",
    "sphinx.ext.autosummary",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
]

# Referencia de API generada desde los módulos listados en api.md
autosummary_generate = True
autodoc_default_options = {
    "members": True,
    "undoc-members": False,
    "show-inheritance": True,
}
autodoc_typehints = "description"

napoleon_numpy_docstring = True
napoleon_google_docstring = False

source_suffix = {".rst": "restructuredtext", ".md": "markdown"}
root_doc = "index"
myst_enable_extensions = ["deflist", "colon_fence"]

html_theme = "sphinx_rtd_theme"
html_title = f"Comercio Exterior {release}"
templates_path = ["_templates"]
html_static_path = ["_static"]
exclude_patterns = ["_build"]
