import json

import fitz
import pytest

from rmlines.export import export_backup, page_options, pdf_page_sizes
from rmlines.folders import MetadataCache, find_page_files, get_page_order, slugify
from rmlines.renderer import RenderOptions

from conftest import layer, lines_file, stroke

DOC = "doc-uuid"
FOLDER = "folder-uuid"


def _metadata(path, uuid, name, parent="", doc_type="DocumentType"):
    (path / f"{uuid}.metadata").write_text(json.dumps({
        "visibleName": name, "parent": parent, "type": doc_type,
    }))


@pytest.fixture
def backup(tmp_path, single_stroke_file):
    root = tmp_path / "xochitl"
    root.mkdir()
    _metadata(root, FOLDER, "Work Notes", doc_type="CollectionType")
    _metadata(root, DOC, "Meeting: Q3", parent=FOLDER)
    _metadata(root, "trashed", "Old", parent="trash")
    (root / f"{DOC}.content").write_text(json.dumps({"pages": ["p2", "p1"]}))
    pages = root / DOC
    pages.mkdir()
    (pages / "p1.rm").write_bytes(single_stroke_file)
    (pages / "p2.rm").write_bytes(lines_file(layer(stroke())))
    (pages / "stray.rm").write_bytes(b"not a lines file, not at all, no no no no no no")
    (root / "trashed").mkdir()
    (root / "trashed" / "x.rm").write_bytes(single_stroke_file)
    return root


def test_slugify():
    assert slugify("Meeting: Q3") == "meeting-q3"
    assert slugify("  a__b  c ") == "a-b-c"
    assert slugify("???") == "untitled"


def test_page_order_formats(tmp_path):
    new = tmp_path / "new.content"
    new.write_text(json.dumps({"pages": ["a", "b"]}))
    old = tmp_path / "old.content"
    old.write_text(json.dumps({"cPages": {"pages": [{"id": "x"}, {"id": "y"}]}}))
    assert get_page_order(new) == {"a": 0, "b": 1}
    assert get_page_order(old) == {"x": 0, "y": 1}
    assert get_page_order(tmp_path / "missing.content") == {}


def test_find_page_files_in_order(backup):
    pages = find_page_files(backup, DOC)
    assert [p.uuid for p in pages] == ["p2", "p1", "stray"]
    assert [p.output_name for p in pages] == ["page-001.svg", "page-002.svg", "stray.svg"]


def test_folder_path_and_trash(backup):
    cache = MetadataCache(backup)
    assert cache.get_folder_path(DOC) == "work-notes"
    assert [d.uuid for d in cache.documents()] == [DOC]


def test_document_in_trashed_folder_is_skipped(backup, tmp_path, single_stroke_file):
    _metadata(backup, "binned-folder", "Binned", parent="trash",
              doc_type="CollectionType")
    _metadata(backup, "binned-doc", "Inside", parent="binned-folder")
    (backup / "binned-doc").mkdir()
    (backup / "binned-doc" / "p.rm").write_bytes(single_stroke_file)

    assert [d.uuid for d in MetadataCache(backup).documents()] == [DOC]
    stats = export_backup(backup, tmp_path / "out", verbose=False)
    assert stats["documents"] == 1
    assert not (tmp_path / "out" / "inside").exists()


def test_folder_cycle_does_not_hang(tmp_path):
    _metadata(tmp_path, "a", "A", parent="b", doc_type="CollectionType")
    _metadata(tmp_path, "b", "B", parent="a", doc_type="CollectionType")
    _metadata(tmp_path, "d", "Doc", parent="a")
    cache = MetadataCache(tmp_path)
    assert cache.get_folder_path("d") == "b/a"
    assert [d.uuid for d in cache.documents()] == ["d"]


def test_export_backup(backup, tmp_path):
    out = tmp_path / "out"
    stats = export_backup(backup, out, verbose=False)
    assert stats == {"documents": 1, "pages": 2, "skipped": 1}
    doc_dir = out / "work-notes" / "meeting-q3"
    assert (doc_dir / "page-001.svg").exists()
    assert (doc_dir / "page-002.svg").exists()
    assert not (doc_dir / "stray.svg").exists()


def test_export_uses_pdf_page_size(backup, tmp_path):
    pdf = fitz.open()
    pdf.new_page(width=595, height=842)
    pdf.new_page(width=842, height=595)
    pdf.save(str(backup / f"{DOC}.pdf"))
    pdf.close()

    assert pdf_page_sizes(backup / f"{DOC}.pdf") == [(595, 842), (842, 595)]

    out = tmp_path / "out"
    export_backup(backup, out, verbose=False)
    second = (out / "work-notes" / "meeting-q3" / "page-002.svg").read_text(encoding="utf-8")
    assert 'width="842" height="595"' in second


def test_page_options_falls_back_to_first_page():
    base = RenderOptions(colored_annotations=True)
    assert page_options(base, [], 3) is base
    sized = page_options(base, [(100.0, 200.0)], -1)
    assert (sized.width, sized.height) == (100.0, 200.0)
    assert sized.colored_annotations


def test_missing_backup_dir(tmp_path):
    with pytest.raises(ValueError):
        export_backup(tmp_path / "nope", tmp_path / "out", verbose=False)
