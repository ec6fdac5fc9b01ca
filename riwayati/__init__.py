"""Novel writing service with AI-assisted chapter drafting.

This package contains a FastAPI service that stores novels and their
chapters in SQLite, a client-side workspace that drives the API and
keeps the editor's view state, an export formatter and an adapter for a
generative text provider.

The modules in this package are:

* ``config.py`` - Settings read from environment variables.

* ``logging_config.py`` - Root logger setup with console and rotating
  file handlers.

* ``db.py`` - Functions for creating and querying the SQLite database.
  Every helper takes an explicit connection.

* ``main.py`` - The FastAPI application: one handler per novel/chapter
  operation plus a document download.

* ``client.py`` - ``Workspace``, the in-memory library and editor state
  reconciled against the API after each mutation.

* ``generation.py`` - Prompt construction, the minimum-draft gate and
  the Gemini provider used to expand a draft into a chapter.

* ``exporter.py`` - Pure functions that render a novel as an RTL HTML
  document or plain text.
"""

__version__ = "0.1.0"
