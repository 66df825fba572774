"""Folio personal site generator.

Folio reads markdown posts organized into sections (posts, projects, talks),
renders them to HTML and either writes a static site to disk or serves it
per request, answering htmx requests with page fragments.

The CLI module is the main entry point, with commands for building the
static site, serving it dynamically, previewing a build and creating posts.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
