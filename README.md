# webimagemeta

A small, dependency-free library for trimming and editing the metadata of
JPEG and PNG images meant for the web.

- **JPEG** (`webimagemeta.jpeg`): strip EXIF, XMP, IPTC, comments and other
  application segments while keeping the frame, Huffman, quantisation and
  restart-interval segments, JFIF (`APP0`), ICC profiles (`APP2`) and the
  EXIF orientation; read and write the comment (`COM`) segment.
- **PNG** (`webimagemeta.png`): drop every chunk except those that affect
  how the image looks; read `tEXt`, `zTXt` and `iTXt` chunks; add new
  `tEXt` chunks.
- **Size estimates**: know exactly how many bytes a comment or text chunk
  will add before writing it.

All library functions take and return `bytes`; none of them touch the file
system.

## Installation

```
pip install webimagemeta
```

## JPEG

```python
from pathlib import Path
from webimagemeta import jpeg

data = Path("photo.jpg").read_bytes()

cleaned = jpeg.clean_metadata(data)
tagged = jpeg.write_comment(cleaned, "Optimised for the web")
print(jpeg.read_comment(tagged))             # "Optimised for the web"
print(jpeg.read_comment(cleaned))            # None

extra = jpeg.estimate_text_comment("Optimised for the web")
assert len(tagged) - len(cleaned) == extra
```

- `clean_metadata(data)` reads the orientation from the first EXIF segment
  and, when it is between 1 and 8, writes back a minimal EXIF segment that
  holds only that tag, placed right after the JFIF segment (or right after
  the start-of-image marker if there is no JFIF segment).
- `read_comment(data)` returns the text of the first comment segment,
  decoded as UTF-8 (invalid bytes are replaced), an empty string for an
  empty comment, or `None` when there is no comment.
- `write_comment(data, comment)` removes every existing comment and inserts
  one new comment segment before the first quantisation table or the start
  of scan. Comments longer than 65,533 bytes of UTF-8 are rejected.
- `estimate_text_comment(comment)` returns 4 plus the UTF-8 length of the
  comment.

## PNG

```python
from pathlib import Path
from webimagemeta import png

data = Path("image.png").read_bytes()

cleaned = png.clean_chunks(data)
tagged = png.add_text_chunk(cleaned, "Author", "Jane Doe")

for chunk in png.read_text_chunks(tagged):
    print(chunk.keyword, "=", chunk.text)

extra = png.estimate_text_chunk("Author", "Jane Doe")
assert len(tagged) - len(cleaned) == extra
```

- `clean_chunks(data)` keeps `IHDR`, `PLTE`, `IDAT`, `IEND`, `tRNS`,
  `gAMA`, `cHRM`, `sRGB`, `iCCP`, `sBIT` and `pHYs`, and drops everything
  else.
- `read_text_chunks(data)` returns a list of `TextChunk(keyword, text)` in
  file order. Compressed `zTXt` and `iTXt` text is inflated; chunks whose
  data cannot be inflated are skipped. A `tEXt` chunk without a separator
  is returned with an empty keyword.
- `add_text_chunk(data, keyword, text)` inserts a `tEXt` chunk just before
  `IEND`. The keyword must be 1 to 79 characters of ASCII letters, digits
  and spaces; the text is stored as UTF-8.
- `estimate_text_chunk(keyword, text)` returns 13 plus the UTF-8 lengths of
  the keyword and the text.

## Validation and errors

Before and after each change the image headers are checked: for JPEG, a
baseline, extended, progressive or lossless Huffman frame with non-zero
dimensions and a well-formed scan header; for PNG, a valid `IHDR`, correct
CRCs and a palette where one is needed, up to the first `IDAT`.

Every failure raises a subclass of `webimagemeta.errors.ImageMetaError`
(both subclasses are also `ValueError`s):

- `InvalidFormatError` — the data is not a JPEG/PNG, its headers do not
  describe a decodable image, or an argument (comment length, keyword) is
  unacceptable.
- `ParseError` — the file structure is broken (bad markers, truncated
  segments or chunks, missing `IEND`).

```python
from webimagemeta import jpeg
from webimagemeta.errors import ImageMetaError

try:
    jpeg.clean_metadata(b"not an image")
except ImageMetaError as exc:
    print(f"rejected: {exc}")
```

## Command line

```
webimagemeta-estimate [JPEG] [PNG]
```

Writes three sample comments to the JPEG and three sample text chunks to the
PNG in memory, and prints the estimated and the actual size increase of each.
Without arguments the images are read from
`tests/test_data/jpeg/metadata/metadata_none.jpg` and
`tests/test_data/png/metadata/metadata_none.png`, relative to the current
directory. On a read or format error it prints the error and exits with
status 1. The files themselves are never modified.

## What it does not do

The library does not decode pixel data, does not read or edit EXIF fields
other than the orientation, and does not write `zTXt` or `iTXt` chunks.
Saving results to disk is left to the caller.

## Development

```
pip install -e ".[test]"
pytest
```