"""Reading and rewriting metadata segments of JPEG images."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from .errors import InvalidFormatError, ParseError

SOI = b"\xff\xd8"
MARKER_SOS = 0xDA
MARKER_DQT = 0xDB
MARKER_COM = 0xFE
MARKER_APP0 = 0xE0
MARKER_APP1 = 0xE1
MARKER_APP2 = 0xE2
ORIENTATION_TAG = 0x0112
MAX_COMMENT_LENGTH = 65533

# SOF0-SOF15 (including DHT, JPG and DAC), DQT, DRI and APP0 (JFIF).
_STRUCTURAL_MARKERS = frozenset(range(0xC0, 0xD0)) | {0xDB, 0xDD, MARKER_APP0}
_SUPPORTED_FRAMES = frozenset({0xC0, 0xC1, 0xC2, 0xC3})
_UNSUPPORTED_FRAMES = frozenset({0xC5, 0xC6, 0xC7, 0xC9, 0xCA, 0xCB, 0xCD, 0xCE, 0xCF})


def _is_standalone(marker: int) -> bool:
    return 0xD0 <= marker <= 0xD9


@dataclass(frozen=True)
class _Segment:
    """A marker and the byte range it occupies, marker bytes included."""

    marker: int
    start: int
    end: int

    @property
    def size(self) -> int:
        """Value of the segment's length field."""
        return self.end - self.start - 2


def _segments(data: bytes) -> Iterator[_Segment]:
    """Walk the marker segments up to and including the start of scan."""
    pos = 2
    while pos < len(data) - 1:
        if data[pos] != 0xFF:
            raise ParseError("Invalid JPEG marker")
        marker = data[pos + 1]
        body = pos + 2
        if marker == MARKER_SOS:
            yield _Segment(marker, pos, len(data))
            return
        if _is_standalone(marker):
            yield _Segment(marker, pos, body)
            pos = body
            continue
        if body + 2 > len(data):
            raise ParseError("Unexpected end of JPEG data")
        size = int.from_bytes(data[body:body + 2], "big")
        if size < 2:
            raise ParseError("Invalid segment size")
        end = body + size
        if end > len(data):
            raise ParseError("Segment extends beyond file")
        yield _Segment(marker, pos, end)
        pos = end


def _check_signature(data: bytes) -> None:
    if len(data) < 4 or data[:2] != SOI:
        raise InvalidFormatError("Not a valid JPEG file")


class _DecodeFailure(Exception):
    pass


def _parse_frame(body: bytes) -> tuple[int, int]:
    if len(body) < 6:
        raise _DecodeFailure("frame header too short")
    height = int.from_bytes(body[1:3], "big")
    width = int.from_bytes(body[3:5], "big")
    components = body[5]
    if components == 0:
        raise _DecodeFailure("frame has no components")
    if len(body) != 6 + 3 * components:
        raise _DecodeFailure("invalid frame header length")
    return width, height


def _check_scan(body: bytes) -> None:
    if not body:
        raise _DecodeFailure("scan header too short")
    components = body[0]
    if not 1 <= components <= 4:
        raise _DecodeFailure("invalid number of scan components")
    if len(body) != 4 + 2 * components:
        raise _DecodeFailure("invalid scan header length")


def _read_frame_size(data: bytes) -> tuple[int, int]:
    """Read headers up to the first scan and return the frame's (width, height)."""
    if data[:2] != SOI:
        raise _DecodeFailure("first two bytes are not an SOI marker")
    n = len(data)
    pos = 2
    frame: tuple[int, int] | None = None
    while True:
        while pos < n and data[pos] != 0xFF:
            pos += 1
        while pos < n and data[pos] == 0xFF:
            pos += 1
        if pos >= n:
            raise _DecodeFailure("unexpected end of file")
        marker = data[pos]
        pos += 1
        if marker == 0x00 or marker == 0x01 or 0xD0 <= marker <= 0xD7:
            continue
        if marker == 0xD8:
            raise _DecodeFailure("unexpected SOI marker")
        if marker == 0xD9:
            raise _DecodeFailure("image ends before any scan")
        if pos + 2 > n:
            raise _DecodeFailure("unexpected end of file")
        length = int.from_bytes(data[pos:pos + 2], "big")
        if length < 2:
            raise _DecodeFailure("invalid marker length")
        end = pos + length
        if end > n:
            raise _DecodeFailure("unexpected end of file")
        body = data[pos + 2:end]
        if marker in _SUPPORTED_FRAMES:
            if frame is not None:
                raise _DecodeFailure("multiple frames")
            frame = _parse_frame(body)
        elif marker in _UNSUPPORTED_FRAMES:
            raise _DecodeFailure(f"unsupported frame type 0x{marker:02X}")
        elif marker == MARKER_SOS:
            if frame is None:
                raise _DecodeFailure("scan encountered before frame")
            _check_scan(body)
            return frame
        pos = end


def _validate_decode(data: bytes) -> None:
    """Raise InvalidFormatError unless the headers describe a decodable image."""
    try:
        width, height = _read_frame_size(data)
    except _DecodeFailure as exc:
        raise InvalidFormatError(f"Invalid JPEG: {exc}") from None
    if width == 0 or height == 0:
        raise InvalidFormatError("Invalid image dimensions")


def _extract_orientation(exif: bytes) -> int | None:
    """Return the IFD0 orientation value of a TIFF structure, if present."""
    if len(exif) < 8:
        return None
    if exif[:2] == b"II":
        order = "little"
    elif exif[:2] == b"MM":
        order = "big"
    else:
        return None
    if int.from_bytes(exif[2:4], order) != 42:
        return None
    ifd0 = int.from_bytes(exif[4:8], order)
    if ifd0 + 2 > len(exif):
        return None
    count = int.from_bytes(exif[ifd0:ifd0 + 2], order)
    for entry in range(ifd0 + 2, ifd0 + 2 + 12 * count, 12):
        if entry + 12 > len(exif):
            break
        if int.from_bytes(exif[entry:entry + 2], order) == ORIENTATION_TAG:
            return int.from_bytes(exif[entry + 8:entry + 10], order)
    return None


def _minimal_exif(orientation: int) -> bytes:
    """Build an APP1 segment holding only the orientation tag."""
    tiff = (
        b"II\x2a\x00\x08\x00\x00\x00"
        + (1).to_bytes(2, "little")
        + ORIENTATION_TAG.to_bytes(2, "little")
        + (3).to_bytes(2, "little")
        + (1).to_bytes(4, "little")
        + orientation.to_bytes(2, "little")
        + b"\x00\x00"
        + b"\x00\x00\x00\x00"
    )
    payload = b"Exif\x00\x00" + tiff
    return bytes([0xFF, MARKER_APP1]) + (len(payload) + 2).to_bytes(2, "big") + payload


def _insert_after_app0(output: bytes, segment: bytes) -> bytes:
    index = output.find(bytes([0xFF, MARKER_APP0]))
    if index < 0:
        return SOI + segment + output[2:]
    size = int.from_bytes(output[index + 2:index + 4], "big")
    end = index + 2 + size
    return output[:end] + segment + output[end:]


def clean_metadata(data: bytes) -> bytes:
    """Strip metadata from a JPEG, keeping JFIF, ICC profiles and the EXIF orientation."""
    data = bytes(data)
    _check_signature(data)
    _validate_decode(data)

    parts = [SOI]
    seen_exif = False
    orientation: int | None = None
    for seg in _segments(data):
        raw = data[seg.start:seg.end]
        if seg.marker == MARKER_SOS or _is_standalone(seg.marker):
            parts.append(raw)
            continue
        payload = data[seg.start + 4:seg.end]
        if seg.marker in _STRUCTURAL_MARKERS:
            keep = True
        elif seg.marker == MARKER_APP1:
            if not seen_exif and seg.size > 8 and payload[:4] == b"Exif":
                seen_exif = True
                orientation = _extract_orientation(payload[6:])
            keep = False
        elif seg.marker == MARKER_APP2:
            keep = seg.size > 14 and payload[:12] == b"ICC_PROFILE\x00"
        else:
            keep = False
        if keep:
            parts.append(raw)

    output = b"".join(parts)
    if orientation is not None and 1 <= orientation <= 8:
        return _insert_after_app0(output, _minimal_exif(orientation))

    _validate_decode(output)
    return output


def read_comment(data: bytes) -> str | None:
    """Return the first comment segment's text, or None when there is none."""
    data = bytes(data)
    _check_signature(data)
    _validate_decode(data)
    for seg in _segments(data):
        if seg.marker == MARKER_SOS:
            break
        if seg.marker == MARKER_COM:
            return data[seg.start + 4:seg.end].decode("utf-8", errors="replace")
    return None


def estimate_text_comment(comment: str) -> int:
    """Bytes a comment segment adds: marker, length field and UTF-8 text."""
    return 2 + 2 + len(comment.encode("utf-8"))


def write_comment(data: bytes, comment: str) -> bytes:
    """Replace every comment segment with a single one holding ``comment``."""
    data = bytes(data)
    _check_signature(data)
    _validate_decode(data)

    encoded = comment.encode("utf-8")
    if len(encoded) > MAX_COMMENT_LENGTH:
        raise InvalidFormatError("Comment too long")
    comment_segment = bytes([0xFF, MARKER_COM]) + (len(encoded) + 2).to_bytes(2, "big") + encoded

    parts = [SOI]
    inserted = False
    for seg in _segments(data):
        if not inserted and seg.marker in (MARKER_SOS, MARKER_DQT):
            parts.append(comment_segment)
            inserted = True
        if seg.marker != MARKER_COM:
            parts.append(data[seg.start:seg.end])
    if not inserted:
        parts.append(comment_segment)

    output = b"".join(parts)
    _validate_decode(output)
    return output