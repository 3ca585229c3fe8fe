"""
PVE Temperature Mod - Patch Data Model
Text edits applied to a target file held as a list of lines

Anchors are regular expressions searched line by line. A chain of anchors is
matched in order, each one at or after the line where the previous one matched,
so unrelated lines in between do not matter.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple


def find_line(lines: Sequence[str], pattern: str, start: int = 0) -> Optional[int]:
    """Index of the first line at or after start matching pattern, or None"""
    regex = re.compile(pattern)
    for index in range(max(start, 0), len(lines)):
        if regex.search(lines[index]):
            return index
    return None


def find_anchor(lines: Sequence[str], anchors: Sequence[str], start: int = 0) -> Optional[int]:
    """
    Follow a chain of anchor patterns and return the line of the last one

    Example:
        ("Ext.define('PVE.node.StatusView'", "items:", "swap", "},") finds the
        closing line of the swap item inside the StatusView items list.
    """
    position = start
    for pattern in anchors:
        found = find_line(lines, pattern, position)
        if found is None:
            return None
        position = found
    return position if anchors else None


def leading_whitespace(line: str) -> str:
    return line[:len(line) - len(line.lstrip())]


@dataclass
class InsertOperation:
    """Insert payload lines before or after the anchored line"""
    name: str
    anchors: Tuple[str, ...]
    payload: List[str]
    position: str = "after"

    def apply(self, lines: List[str]) -> bool:
        """
        Insert the payload in place

        Payload lines are indented with the anchor line's indentation; empty
        payload lines stay empty.

        Returns:
            True if the anchor was found and lines were inserted
        """
        index = find_anchor(lines, self.anchors)
        if index is None:
            return False

        indent = leading_whitespace(lines[index])
        new_lines = [indent + line if line else line for line in self.payload]

        at = index + 1 if self.position == "after" else index
        lines[at:at] = new_lines
        return True


@dataclass
class Substitution:
    """
    Regex replacement applied to the first match on a line

    A replacement may produce several lines; the extra lines get the indentation
    of the line they came from.
    """
    pattern: str
    replacement: str

    def apply(self, line: str) -> List[str]:
        new_text = re.sub(self.pattern, self.replacement, line, count=1)
        parts = new_text.split("\n")
        indent = leading_whitespace(line)
        return [parts[0]] + [indent + part for part in parts[1:]]


@dataclass
class SubstituteOperation:
    """Apply substitutions to the block from scope_start to the next scope_end line"""
    name: str
    scope_start: str
    scope_end: str
    substitutions: List[Substitution] = field(default_factory=list)

    def apply(self, lines: List[str]) -> bool:
        start = find_line(lines, self.scope_start)
        if start is None:
            return False
        end = find_line(lines, self.scope_end, start + 1)
        if end is None:
            return False

        changed = False
        scoped: List[str] = []
        for line in lines[start:end + 1]:
            new_lines = [line]
            for substitution in self.substitutions:
                rewritten = []
                for current in new_lines:
                    rewritten.extend(substitution.apply(current))
                new_lines = rewritten
            if new_lines != [line]:
                changed = True
            scoped.extend(new_lines)

        lines[start:end + 1] = scoped
        return changed


@dataclass
class FilePatch:
    """
    Everything that is done to one target file

    The guard pattern marks a file that was already patched. Insert operations
    are required: when one of them cannot find its anchor the file is left alone.
    Substitutions are best effort.
    """
    label: str
    path: str
    guard: str
    operations: list = field(default_factory=list)

    def is_applied(self, text: str) -> bool:
        return re.search(self.guard, text) is not None
