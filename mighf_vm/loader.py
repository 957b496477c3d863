"""
mighf VM — Program Loader

Reads program text, assembles it line by line and fills an
InstructionStore. Lines that do not assemble are skipped (logged at
DEBUG); loading stops as soon as the store is full. The store is cleared
before anything is written, so slots past the new program are NOPs.

In strict mode the first bad line raises AssemblerError and the store
keeps whatever was stored before it.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Union

from .assembler import Assembler, AssemblerError
from .mem.memory import InstructionStore

log = logging.getLogger("mighf.loader")


@dataclass
class LoadResult:
    """Outcome of one load."""
    count: int = 0
    skipped: List[AssemblerError] = field(default_factory=list)
    store_full: bool = False    # loading stopped at store capacity
    source: str = ""


def load_lines(store: InstructionStore, lines: Iterable[str],
               strict: bool = False, source: str = "<lines>") -> LoadResult:
    """Assemble lines into store. Returns a LoadResult."""
    store.clear()
    asm = Assembler(strict=strict)
    result = LoadResult(source=source)

    for line_num, inst in asm.iter_lines(lines):
        store.append(inst)
        if store.full:
            # Anything after this point is never looked at
            result.store_full = True
            break

    result.count = store.count
    result.skipped = list(asm.errors)
    for err in result.skipped:
        log.debug("%s: skipped %s", source, err)
    log.info("Loaded %d instructions from %s (%d skipped)",
             result.count, source, len(result.skipped))
    if result.store_full:
        log.info("%s: instruction store full at %d, loading stopped",
                 source, store.CAPACITY)
    return result


def load_source(store: InstructionStore, text: str,
                strict: bool = False) -> LoadResult:
    """Load program text held in a string."""
    return load_lines(store, text.splitlines(), strict=strict, source="<text>")


def load_file(store: InstructionStore, path: Union[str, Path],
              strict: bool = False) -> LoadResult:
    """Load a program file.

    Raises OSError (FileNotFoundError, PermissionError, ...) if the file
    cannot be opened; the store is left untouched in that case.
    """
    path = Path(path)
    with path.open("r", encoding="utf-8", errors="replace") as f:
        return load_lines(store, f, strict=strict, source=str(path))
