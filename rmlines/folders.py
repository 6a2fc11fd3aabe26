"""
Locating pages in a local copy of the tablet's document directory.

Each document is a set of files named after its uuid:
<uuid>.metadata (name, parent), <uuid>.content (page order),
<uuid>/<page-uuid>.rm (one lines file per page) and optionally <uuid>.pdf.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

TRASH = "trash"
FOLDER_TYPE = "CollectionType"


@dataclass
class DocumentInfo:
    """Document or folder entry from a .metadata file."""
    uuid: str
    name: str
    parent: str
    doc_type: str

    @property
    def is_folder(self) -> bool:
        return self.doc_type == FOLDER_TYPE


@dataclass
class PageFile:
    """A page's lines file and its position in the document."""
    uuid: str
    path: Path
    index: int  # -1 if the page is not listed in .content

    @property
    def output_name(self) -> str:
        if self.index >= 0:
            return f"page-{self.index + 1:03d}.svg"
        return f"{self.uuid}.svg"


def slugify(name: str) -> str:
    """Turn a visible name into a filesystem-safe directory name."""
    slug = re.sub(r"[^\w\s-]", "", name.lower())
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-") or "untitled"


def get_page_order(content_path: Path) -> dict[str, int]:
    """
    Page uuid -> page index from a .content file.

    Newer files list page ids under "pages", older ones under
    "cPages.pages[].id". A missing or unreadable file gives no order.
    """
    try:
        with open(content_path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.debug("No page order from %s: %s", content_path, e)
        return {}

    pages = data.get("pages")
    if isinstance(pages, list) and pages and isinstance(pages[0], str):
        return {page_id: i for i, page_id in enumerate(pages)}

    order = {}
    for i, page in enumerate(data.get("cPages", {}).get("pages", [])):
        page_id = page.get("id")
        if page_id:
            order[page_id] = i
    return order


def find_page_files(backup_dir: Path, doc_uuid: str) -> list[PageFile]:
    """Lines files for a document, in page order, unlisted pages last."""
    backup_dir = Path(backup_dir)
    rm_dir = backup_dir / doc_uuid
    if not rm_dir.is_dir():
        return []

    order = get_page_order(backup_dir / f"{doc_uuid}.content")
    pages = [
        PageFile(uuid=p.stem, path=p, index=order.get(p.stem, -1))
        for p in rm_dir.glob("*.rm")
    ]
    pages.sort(key=lambda p: (p.index < 0, p.index, p.uuid))
    return pages


class MetadataCache:
    """
    All .metadata entries of a backup, loaded once.
    """

    def __init__(self, backup_dir: Path):
        self.backup_dir = Path(backup_dir)
        self._items: dict[str, DocumentInfo] = {}
        self._loaded = False

    def load(self) -> None:
        if self._loaded:
            return

        for metadata_file in sorted(self.backup_dir.glob("*.metadata")):
            uuid = metadata_file.stem
            try:
                with open(metadata_file) as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Skipping unreadable metadata %s: %s",
                               metadata_file.name, e)
                continue
            self._items[uuid] = DocumentInfo(
                uuid=uuid,
                name=data.get("visibleName", uuid),
                parent=data.get("parent", ""),
                doc_type=data.get("type", "DocumentType"),
            )

        self._loaded = True

    def _ancestors(self, doc: DocumentInfo) -> tuple[list[DocumentInfo], bool]:
        """
        Folders above a document, nearest first, and whether the chain
        ends in the trash.
        """
        folders = []
        seen = {doc.uuid}
        parent = doc.parent
        while parent and parent not in seen:
            if parent == TRASH:
                return folders, True
            folder = self._items.get(parent)
            if not folder:
                break
            seen.add(parent)
            folders.append(folder)
            parent = folder.parent
        return folders, False

    def get_folder_path(self, uuid: str) -> str:
        """
        Slugged folder path of a document, e.g. "work/notes", "" for root.
        """
        self.load()
        doc = self._items.get(uuid)
        if not doc:
            return ""

        folders, _ = self._ancestors(doc)
        return "/".join(slugify(folder.name) for folder in reversed(folders))

    def documents(self) -> list[DocumentInfo]:
        """All documents (no folders), skipping anything under the trash."""
        self.load()
        return [
            doc for doc in self._items.values()
            if not doc.is_folder and not self._ancestors(doc)[1]
        ]
