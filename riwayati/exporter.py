"""Export a novel as a downloadable document.

Every function here is a pure function of an in-memory novel dict, the
shape returned by ``GET /api/novels/{id}``: ``title``, ``author``,
``description`` and a ``chapters`` list. Nothing touches the database or
the network, so the client can export whatever it currently holds.

Two formats are supported:

* ``html`` - the default. A fixed RTL template rendered with Jinja2 and
  prefixed with a UTF-8 BOM, served as ``.doc`` so word processors open
  it directly.
* ``txt`` - chapter titles and bodies concatenated as plain text.

Chapters are always emitted in ascending ``order_index`` order, whatever
order they were created or listed in.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape

UNKNOWN_AUTHOR = "كاتب مجهول"

# (filename, media_type, payload)
ExportResult = Tuple[str, str, bytes]

_templates = Environment(
    loader=FileSystemLoader(str(Path(__file__).parent / "templates")),
    autoescape=select_autoescape(["html"]),
)


def sorted_chapters(novel: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Return the novel's chapters sorted by ``order_index`` ascending.

    The sort is stable, so chapters sharing an index keep their list
    order. A chapter without an index sorts first.
    """
    chapters = novel.get("chapters") or []
    return sorted(chapters, key=lambda ch: (ch.get("order_index") is not None, ch.get("order_index") or 0))


def render_html(novel: Dict[str, Any]) -> str:
    """Render the novel through the fixed export template."""
    template = _templates.get_template("novel_export.html")
    return template.render(
        novel=novel,
        chapters=sorted_chapters(novel),
        unknown_author=UNKNOWN_AUTHOR,
    )


def export_html(novel: Dict[str, Any]) -> bytes:
    # The BOM makes Word pick UTF-8 instead of the system code page
    return ("\ufeff" + render_html(novel)).encode("utf-8")


def export_txt(novel: Dict[str, Any]) -> bytes:
    """Concatenate chapter texts into a single UTF-8 document.

    The novel title, author and description come first. Each chapter
    then begins with its title on a separate line followed by a blank
    line and the chapter content.
    """
    parts: List[str] = [(novel.get("title") or "").strip() + "\n"]
    parts.append("بواسطة: " + (novel.get("author") or UNKNOWN_AUTHOR).strip() + "\n")
    description = (novel.get("description") or "").strip()
    if description:
        parts.append(description + "\n")
    parts.append("\n")
    for chapter in sorted_chapters(novel):
        title = (chapter.get("title") or "").strip()
        text = (chapter.get("content") or "").strip()
        parts.append(title + "\n\n")
        parts.append(text + "\n\n\n")
    return "".join(parts).encode("utf-8")


EXPORT_FORMATS: Dict[str, Tuple[str, str, Callable[[Dict[str, Any]], bytes]]] = {
    "html": (".doc", "application/msword", export_html),
    "txt": (".txt", "text/plain; charset=utf-8", export_txt),
}


def export_filename(title: str, extension: str) -> str:
    """Derive a download file name from the novel title."""
    name = re.sub(r'[\\/:*?"<>|\x00-\x1f]+', "_", (title or "").strip()).strip(" .")
    return (name or "novel") + extension


def export_novel(novel: Dict[str, Any], fmt: str = "html") -> ExportResult:
    """Return ``(filename, media_type, payload)`` for the requested format.

    Raises ``ValueError`` for an unknown format.
    """
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")
    extension, media_type, build = EXPORT_FORMATS[fmt]
    return export_filename(novel.get("title") or "", extension), media_type, build(novel)


def write_export(novel: Dict[str, Any], dest_dir: str, fmt: str = "html") -> str:
    """Write the exported document into ``dest_dir`` and return its path."""
    filename, _, payload = export_novel(novel, fmt)
    dest_dir_path = Path(dest_dir)
    dest_dir_path.mkdir(parents=True, exist_ok=True)
    path = dest_dir_path / filename
    path.write_bytes(payload)
    return str(path)
