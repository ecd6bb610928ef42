"""Generate a Markdown manual page from block module doc comments."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Iterable

USAGE = (
    "blocks manpage generator\n"
    "\n"
    "USAGE:\n"
    "  gen-manpage <src dir> <output file>\n"
    "EXAMPLE:\n"
    "  gen-manpage ../src ../man/blocks.md\n"
)

_DOC_PREFIX = "//!"


def extract_doc(lines: Iterable[str]) -> str:
    """Collect the leading module doc comment, demoting headings by two levels."""
    doc = []
    for line in lines:
        if not line.startswith(_DOC_PREFIX):
            break
        text = line[len(_DOC_PREFIX):]
        if text.startswith(" "):
            text = text[1:]
        if text.startswith("#"):
            doc.append("##")
        doc.append(text)
        doc.append("\n")
    return "".join(doc)


def generate(src_dir: str | os.PathLike) -> str:
    """Build the Markdown for every documented file in ``<src_dir>/blocks``."""
    blocks_dir = Path(src_dir) / "blocks"
    result = []
    with os.scandir(blocks_dir) as entries:
        for entry in entries:
            if not entry.is_file(follow_symlinks=False):
                continue
            if "." not in entry.name:
                raise ValueError(f"file name has no extension: {entry.name}")
            block_name = entry.name.rsplit(".", 1)[0]
            with open(entry.path, encoding="utf-8") as fh:
                doc = extract_doc(line.rstrip("\r\n") for line in fh)
            if doc:
                result.append((block_name, doc))
    result.sort(key=lambda item: item[0])
    return "".join(f"## {block}\n{doc}\n" for block, doc in result)


def main(argv: list[str] | None = None) -> int:
    """Command entry point: ``gen-manpage <src dir> <output file>``."""
    args = sys.argv[1:] if argv is None else argv
    if len(args) < 2:
        print(USAGE, file=sys.stderr)
        return 1
    src_dir, out_path = args[0], args[1]
    markdown = generate(src_dir)
    Path(out_path).write_text(markdown, encoding="utf-8")
    return 0