"""Reading, adding and stripping metadata chunks of PNG images."""

from __future__ import annotations

import zlib
from dataclasses import dataclass
from typing import Iterator

from .errors import InvalidFormatError, ParseError

SIGNATURE = b"\x89PNG\r\n\x1a\n"
MAX_KEYWORD_LENGTH = 79

# Chunks kept by clean_chunks: core structure, transparency, colour space
# and physical dimensions.
CRITICAL_CHUNKS = frozenset(
    {
        "IHDR", "PLTE", "IDAT", "IEND",
        "tRNS",
        "gAMA", "cHRM", "sRGB", "iCCP", "sBIT",
        "pHYs",
    }
)

_TEXT_KINDS = frozenset({b"tEXt", b"zTXt", b"iTXt"})

# Allowed bit depths for each colour type.
_VALID_DEPTHS = {
    0: frozenset({1, 2, 4, 8, 16}),
    2: frozenset({8, 16}),
    3: frozenset({1, 2, 4, 8}),
    4: frozenset({8, 16}),
    6: frozenset({8, 16}),
}


@dataclass(frozen=True)
class TextChunk:
    """A textual chunk: a keyword of 1-79 Latin characters and its text."""

    keyword: str
    text: str


@dataclass(frozen=True)
class _Chunk:
    """A chunk's type and the byte range it occupies, CRC included."""

    kind: bytes
    start: int
    end: int

    @property
    def body(self) -> slice:
        return slice(self.start + 8, self.end - 4)


def _check_signature(data: bytes) -> None:
    if len(data) < 8 or data[:8] != SIGNATURE:
        raise InvalidFormatError("Not a valid PNG file")


def _chunks(data: bytes, strict: bool) -> Iterator[_Chunk]:
    """Walk the chunks after the signature, stopping after IEND.

    A truncated chunk raises ParseError when ``strict`` and ends the walk otherwise.
    """
    pos = 8
    while pos < len(data):
        if pos + 8 > len(data):
            if strict:
                raise ParseError("Unexpected end of PNG data")
            return
        length = int.from_bytes(data[pos:pos + 4], "big")
        kind = data[pos + 4:pos + 8]
        end = pos + 12 + length
        if end > len(data):
            if strict:
                raise ParseError("Chunk extends beyond file")
            return
        yield _Chunk(kind, pos, end)
        pos = end
        if kind == b"IEND":
            return


class _DecodeFailure(Exception):
    pass


def _parse_ihdr(body: bytes) -> tuple[int, int]:
    if len(body) != 13:
        raise _DecodeFailure("invalid IHDR length")
    width = int.from_bytes(body[0:4], "big")
    height = int.from_bytes(body[4:8], "big")
    bit_depth, color_type, compression, filtering, interlace = body[8:13]
    depths = _VALID_DEPTHS.get(color_type)
    if depths is None:
        raise _DecodeFailure(f"invalid color type {color_type}")
    if bit_depth not in depths:
        raise _DecodeFailure(
            f"invalid bit depth {bit_depth} for color type {color_type}"
        )
    if compression != 0:
        raise _DecodeFailure(f"unknown compression method {compression}")
    if filtering != 0:
        raise _DecodeFailure(f"unknown filter method {filtering}")
    if interlace not in (0, 1):
        raise _DecodeFailure(f"unknown interlace method {interlace}")
    return width, height


def _read_header(data: bytes) -> tuple[int, int]:
    """Read chunks up to the first IDAT and return the image's (width, height)."""
    if data[:8] != SIGNATURE:
        raise _DecodeFailure("invalid PNG signature")
    n = len(data)
    pos = 8
    header: tuple[int, int] | None = None
    indexed = False
    has_palette = False
    while True:
        if pos + 8 > n:
            raise _DecodeFailure("unexpected end of file")
        length = int.from_bytes(data[pos:pos + 4], "big")
        if length > 0x7FFFFFFF:
            raise _DecodeFailure("chunk length too large")
        kind = data[pos + 4:pos + 8]
        end = pos + 12 + length
        if end > n:
            raise _DecodeFailure("unexpected end of file")
        body = data[pos + 8:end - 4]
        crc = int.from_bytes(data[end - 4:end], "big")
        if zlib.crc32(kind + body) != crc:
            raise _DecodeFailure(f"CRC error in {kind.decode('latin-1')} chunk")
        if header is None:
            if kind != b"IHDR":
                raise _DecodeFailure("IHDR chunk missing")
            header = _parse_ihdr(body)
            indexed = body[9] == 3
        elif kind == b"IHDR":
            raise _DecodeFailure("duplicate IHDR chunk")
        elif kind == b"PLTE":
            if length == 0 or length % 3 or length > 3 * 256:
                raise _DecodeFailure("invalid palette length")
            has_palette = True
        elif kind == b"IDAT":
            if indexed and not has_palette:
                raise _DecodeFailure("missing palette")
            return header
        elif kind == b"IEND":
            raise _DecodeFailure("image ends before any image data")
        pos = end


def _validate_decode(data: bytes) -> None:
    """Raise InvalidFormatError unless the headers describe a decodable image."""
    try:
        width, height = _read_header(data)
    except _DecodeFailure as exc:
        raise InvalidFormatError(f"Invalid PNG: {exc}") from None
    if width == 0 or height == 0:
        raise InvalidFormatError("Invalid image dimensions")


def _inflate(payload: bytes) -> bytes | None:
    try:
        return zlib.decompress(payload)
    except zlib.error:
        return None


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def _parse_text(kind: bytes, body: bytes) -> TextChunk | None:
    null = body.find(0)
    if kind == b"tEXt":
        if null < 0:
            return TextChunk("", _decode(body))
        return TextChunk(_decode(body[:null]), _decode(body[null + 1:]))
    if null < 0:
        return None
    keyword = _decode(body[:null])
    if kind == b"zTXt":
        if null + 2 >= len(body) or body[null + 1] != 0:
            return None
        inflated = _inflate(body[null + 2:])
        return None if inflated is None else TextChunk(keyword, _decode(inflated))
    # iTXt: flag, method, language tag, translated keyword, text
    if null + 3 >= len(body):
        return None
    compressed = body[null + 1] == 1
    remaining = body[null + 3:]
    lang_end = remaining.find(0)
    if lang_end < 0:
        return None
    after_lang = remaining[lang_end + 1:]
    trans_end = after_lang.find(0)
    if trans_end < 0:
        return None
    text_data = after_lang[trans_end + 1:]
    if compressed:
        inflated = _inflate(text_data)
        if inflated is None:
            return None
        text_data = inflated
    return TextChunk(keyword, _decode(text_data))


def clean_chunks(data: bytes) -> bytes:
    """Drop every chunk that is not needed to display the image faithfully."""
    data = bytes(data)
    _check_signature(data)
    _validate_decode(data)

    parts = [data[:8]]
    for chunk in _chunks(data, strict=True):
        try:
            kind = chunk.kind.decode("utf-8")
        except UnicodeDecodeError:
            raise ParseError("Invalid chunk type") from None
        if kind in CRITICAL_CHUNKS:
            parts.append(data[chunk.start:chunk.end])

    output = b"".join(parts)
    _validate_decode(output)
    return output


def read_text_chunks(data: bytes) -> list[TextChunk]:
    """Return every tEXt, zTXt and iTXt chunk in file order, decompressed."""
    data = bytes(data)
    _check_signature(data)
    _validate_decode(data)

    found = []
    for chunk in _chunks(data, strict=False):
        if chunk.kind not in _TEXT_KINDS:
            continue
        body = data[chunk.body]
        if not body:
            continue
        parsed = _parse_text(chunk.kind, body)
        if parsed is not None:
            found.append(parsed)
    return found


def estimate_text_chunk(keyword: str, text: str) -> int:
    """Bytes a tEXt chunk adds: length, type, keyword, separator, text and CRC."""
    return 4 + 4 + len(keyword.encode("utf-8")) + 1 + len(text.encode("utf-8")) + 4


def _check_keyword(keyword: str) -> None:
    if not keyword or len(keyword.encode("utf-8")) > MAX_KEYWORD_LENGTH:
        raise InvalidFormatError("Keyword must be 1-79 characters")
    if not all(ch.isascii() and (ch.isalnum() or ch == " ") for ch in keyword):
        raise InvalidFormatError("Keyword must contain only Latin characters")


def _find_iend(data: bytes) -> int:
    pos = 8
    while pos + 8 <= len(data):
        if data[pos + 4:pos + 8] == b"IEND":
            return pos
        end = pos + 12 + int.from_bytes(data[pos:pos + 4], "big")
        if end > len(data):
            break
        pos = end
    raise ParseError("IEND chunk not found")


def add_text_chunk(data: bytes, keyword: str, text: str) -> bytes:
    """Insert a new tEXt chunk just before IEND."""
    data = bytes(data)
    _check_signature(data)
    _validate_decode(data)
    _check_keyword(keyword)

    iend = _find_iend(data)
    body = keyword.encode("utf-8") + b"\x00" + text.encode("utf-8")
    chunk = (
        len(body).to_bytes(4, "big")
        + b"tEXt"
        + body
        + zlib.crc32(b"tEXt" + body).to_bytes(4, "big")
    )
    output = data[:iend] + chunk + data[iend:]
    _validate_decode(output)
    return output