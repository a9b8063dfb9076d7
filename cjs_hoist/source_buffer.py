"""
Edit buffer over an immutable source text.

The buffer records overwrites and insertions against byte offsets of the
original text (tree-sitter reports byte offsets) and only materializes the
rewritten text, and optionally a version 3 source map, once all edits have
been issued.
"""

import bisect
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import EditConflictError
from .types import Edit, SourceMap


_BASE64_DIGITS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"

# (output bytes, original offset or None for inserted text, is_overwrite)
Piece = Tuple[bytes, Optional[int], bool]


def _utf16_length(data: bytes) -> int:
    """Length of UTF-8 encoded text in UTF-16 code units, the unit of map columns."""
    return len(data.decode("utf-8").encode("utf-16-le")) // 2


def encode_vlq(value: int) -> str:
    """Encode a signed integer as a base64 VLQ source map field."""
    vlq = ((-value) << 1) | 1 if value < 0 else value << 1
    encoded = ""
    while True:
        digit = vlq & 31
        vlq >>= 5
        if vlq:
            digit |= 32
        encoded += _BASE64_DIGITS[digit]
        if not vlq:
            return encoded


class SourceBuffer:
    """Original text plus an ordered log of edits.

    Overwrites and removals claim byte ranges that must not overlap. Insertions
    are attached to a position: ``append_right`` text belongs to the content
    starting at the position, ``append_left`` text to the content ending there.
    Several insertions at one position are emitted in the order they were
    issued, left-attached text first.
    """

    def __init__(self, original: str):
        self.original = original
        self._data = original.encode("utf-8")
        # Overwrites sorted by start, with their starts mirrored for bisect
        self._edits: List[Edit] = []
        self._edit_starts: List[int] = []
        self._left: Dict[int, List[str]] = {}
        self._right: Dict[int, List[str]] = {}
        self._positions: List[int] = []
        self._line_starts: Optional[List[int]] = None

    def __len__(self) -> int:
        return len(self._data)

    def slice(self, start_byte: int, end_byte: int) -> str:
        """Return the original text between two byte offsets."""
        return self._data[start_byte:end_byte].decode("utf-8")

    def has_changed(self) -> bool:
        return bool(self._edits or self._left or self._right)

    def overwrite(self, start_byte: int, end_byte: int, text: str) -> None:
        """Replace the content of [start_byte, end_byte) with text.

        Insertions anchored at the range boundaries are kept.

        Raises:
            EditConflictError: if the range overlaps an earlier overwrite or
                contains an earlier insertion point
        """
        self._check_position(start_byte)
        self._check_position(end_byte)
        if start_byte >= end_byte:
            raise ValueError(f"Cannot overwrite empty range {start_byte}:{end_byte}")

        # Overwrites never overlap, so sorting by start also sorts by end and
        # only the neighbours of the insertion index can conflict
        index = bisect.bisect_left(self._edit_starts, start_byte)
        for neighbour in self._edits[max(index - 1, 0):index + 1]:
            if neighbour.overlaps(start_byte, end_byte):
                raise EditConflictError(
                    f"Overwrite {start_byte}:{end_byte} overlaps earlier edit "
                    f"{neighbour.start_byte}:{neighbour.end_byte}"
                )
        position_index = bisect.bisect_right(self._positions, start_byte)
        if position_index < len(self._positions) and self._positions[position_index] < end_byte:
            raise EditConflictError(
                f"Overwrite {start_byte}:{end_byte} would swallow insertion at "
                f"{self._positions[position_index]}"
            )

        self._edits.insert(index, Edit(start_byte, end_byte, text))
        self._edit_starts.insert(index, start_byte)

    def remove(self, start_byte: int, end_byte: int) -> None:
        self.overwrite(start_byte, end_byte, "")

    def append_right(self, position: int, text: str) -> None:
        """Insert text before the byte at position."""
        self._check_insertion(position)
        self._add_position(position)
        self._right.setdefault(position, []).append(text)

    def append_left(self, position: int, text: str) -> None:
        """Insert text after the byte preceding position."""
        self._check_insertion(position)
        self._add_position(position)
        self._left.setdefault(position, []).append(text)

    def to_string(self) -> str:
        """Materialize the rewritten text."""
        return b"".join(piece for piece, _, _ in self._pieces()).decode("utf-8")

    def generate_map(self, source: Optional[str] = None, file: Optional[str] = None,
                     include_content: bool = True) -> SourceMap:
        """
        Build a version 3 source map from the original to the rewritten text.

        Unchanged content is mapped at the start of every piece and at each
        line start inside it; overwritten content is mapped at its first column
        to the start of the range it replaced; inserted text is unmapped.

        Args:
            source: Name of the original file recorded in ``sources``
            file: Name of the generated file
            include_content: Embed the original text in ``sourcesContent``

        Returns:
            Source map as a JSON-compatible dict
        """
        lines: List[List[Tuple[int, int, int]]] = [[]]
        column = 0

        for piece, origin, is_overwrite in self._pieces():
            if origin is not None:
                if is_overwrite:
                    lines[-1].append((column, *self._locate(origin)))
                    column = self._advance(lines, column, piece)
                    continue
                offset = origin
                for index, part in enumerate(piece.split(b"\n")):
                    if index > 0:
                        lines.append([])
                        column = 0
                    if part:
                        lines[-1].append((column, *self._locate(offset)))
                        column += _utf16_length(part)
                    offset += len(part) + 1
            else:
                column = self._advance(lines, column, piece)

        source_map: SourceMap = {
            "version": 3,
            "sources": [source or ""],
            "names": [],
            "mappings": self._encode_mappings(lines),
        }
        if file:
            source_map["file"] = file
        if include_content:
            source_map["sourcesContent"] = [self.original]
        return source_map

    def _pieces(self) -> Iterator[Piece]:
        data = self._data
        positions = self._positions
        boundaries = [(e.start_byte, e.end_byte, e.replacement) for e in self._edits]
        boundaries.append((len(data), len(data), None))

        cursor = 0
        next_position = 0
        for start, end, replacement in boundaries:
            while next_position < len(positions) and positions[next_position] <= start:
                position = positions[next_position]
                if position > cursor:
                    yield data[cursor:position], cursor, False
                    cursor = position
                for text in self._left.get(position, ()):
                    yield text.encode("utf-8"), None, False
                for text in self._right.get(position, ()):
                    yield text.encode("utf-8"), None, False
                next_position += 1
            if start > cursor:
                yield data[cursor:start], cursor, False
            if replacement is None:
                break
            yield replacement.encode("utf-8"), start, True
            cursor = end

    def _check_position(self, position: int) -> None:
        if not 0 <= position <= len(self._data):
            raise IndexError(f"Position {position} is outside the source (length {len(self._data)})")

    def _check_insertion(self, position: int) -> None:
        self._check_position(position)
        # The only overwrite that can contain position is the last one starting before it
        index = bisect.bisect_left(self._edit_starts, position) - 1
        if index >= 0 and position < self._edits[index].end_byte:
            edit = self._edits[index]
            raise EditConflictError(
                f"Insertion at {position} falls inside overwritten range "
                f"{edit.start_byte}:{edit.end_byte}"
            )

    def _add_position(self, position: int) -> None:
        if position not in self._left and position not in self._right:
            bisect.insort(self._positions, position)

    def _locate(self, offset: int) -> Tuple[int, int]:
        """Convert a byte offset of the original to a 0-based (line, UTF-16 column)."""
        if self._line_starts is None:
            self._line_starts = [0]
            index = self._data.find(b"\n")
            while index != -1:
                self._line_starts.append(index + 1)
                index = self._data.find(b"\n", index + 1)
        line = bisect.bisect_right(self._line_starts, offset) - 1
        line_start = self._line_starts[line]
        return line, _utf16_length(self._data[line_start:offset])

    @staticmethod
    def _advance(lines: List[List[Tuple[int, int, int]]], column: int, piece: bytes) -> int:
        parts = piece.split(b"\n")
        for _ in parts[1:]:
            lines.append([])
        if len(parts) > 1:
            return _utf16_length(parts[-1])
        return column + _utf16_length(parts[0])

    @staticmethod
    def _encode_mappings(lines: List[List[Tuple[int, int, int]]]) -> str:
        encoded_lines = []
        previous_line = 0
        previous_column = 0
        for segments in lines:
            previous_generated = 0
            encoded = []
            for generated, line, column in segments:
                encoded.append(
                    encode_vlq(generated - previous_generated)
                    + encode_vlq(0)
                    + encode_vlq(line - previous_line)
                    + encode_vlq(column - previous_column)
                )
                previous_generated = generated
                previous_line = line
                previous_column = column
            encoded_lines.append(",".join(encoded))
        return ";".join(encoded_lines)
