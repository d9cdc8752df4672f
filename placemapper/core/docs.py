"""Documentation sidebar content, loaded once per session."""
import json
from pathlib import Path
from typing import Optional
from placemapper.core.config import WIKI_PATH
from placemapper.utils.logging import log_error

ERROR_MARKDOWN = "<p>Error: Could not load the wiki documentation.</p>"


def render_document(document: dict) -> str:
    """
    Render a documentation payload to markdown.

    Args:
        document: {"title": str, "sections": [{"title": str, "content": [str]}]}
            where content items are HTML paragraph fragments

    Returns:
        Markdown with an h4 per section and one paragraph per fragment
    """
    parts = []
    for section in document["sections"]:
        parts.append(f"#### {section['title']}")
        for paragraph in section["content"]:
            parts.append(f"<p>{paragraph}</p>")
    return "\n\n".join(parts)


class DocumentationPanel:
    """Sidebar documentation with a cached render."""

    def __init__(self, path: Path = WIKI_PATH):
        self.path = path
        self.title = "Documentation"
        self.is_open = False
        self.is_loaded = False
        self._markdown: Optional[str] = None

    def open(self) -> str:
        """Open the panel, loading the document on first use only."""
        if not self.is_loaded:
            self._load_and_render()
        self.is_open = True
        return self._markdown

    def close(self) -> None:
        self.is_open = False

    @property
    def markdown(self) -> Optional[str]:
        return self._markdown

    def _load_and_render(self) -> None:
        # A failed load is not cached; the next open tries again
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
            self._markdown = render_document(document)
            self.title = document["title"]
        except (OSError, ValueError, KeyError, TypeError) as e:
            log_error(e, {"module": __name__, "function": "_load_and_render", "path": str(self.path)})
            self._markdown = ERROR_MARKDOWN
            return
        self.is_loaded = True
