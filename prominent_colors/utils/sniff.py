"""
Content type sniffing from the leading bytes of a payload.

Implements the WHATWG MIME sniffing signature table, which is what browsers
and Go's net/http use. Only the image signatures produce an "image/" type.
"""
from typing import Callable, List, Tuple

SNIFF_LEN = 512

_WHITESPACE = b"\t\n\x0c\r "

_HTML_MARKERS = [
    b"<!DOCTYPE HTML",
    b"<HTML",
    b"<HEAD",
    b"<SCRIPT",
    b"<IFRAME",
    b"<H1",
    b"<DIV",
    b"<FONT",
    b"<TABLE",
    b"<A",
    b"<STYLE",
    b"<TITLE",
    b"<B",
    b"<BODY",
    b"<BR",
    b"<P",
    b"<!--",
]


def _html(data: bytes) -> bool:
    data = data.lstrip(_WHITESPACE)
    for marker in _HTML_MARKERS:
        if len(data) <= len(marker):
            continue
        if data[:len(marker)].upper() != marker:
            continue
        # The marker must be terminated by a space or ">".
        if data[len(marker)] in b" >":
            return True
    return False


def _xml(data: bytes) -> bool:
    return data.lstrip(_WHITESPACE).startswith(b"<?xml")


def _prefix(signature: bytes) -> Callable[[bytes], bool]:
    return lambda data: data.startswith(signature)


def _masked(mask: bytes, pattern: bytes) -> Callable[[bytes], bool]:
    def match(data: bytes) -> bool:
        if len(data) < len(pattern):
            return False
        return all(data[i] & mask[i] == pattern[i] for i in range(len(pattern)))
    return match


def _mp4(data: bytes) -> bool:
    if len(data) < 12:
        return False
    box_size = int.from_bytes(data[:4], "big")
    if box_size % 4 != 0 or len(data) < box_size:
        return False
    if data[4:8] != b"ftyp":
        return False
    for start in range(8, box_size, 4):
        if start == 12:
            continue
        if data[start:start + 3] == b"mp4":
            return True
    return False


_SIGNATURES: List[Tuple[Callable[[bytes], bool], str]] = [
    (_html, "text/html; charset=utf-8"),
    (_xml, "text/xml; charset=utf-8"),
    (_prefix(b"%PDF-"), "application/pdf"),
    (_prefix(b"%!PS-Adobe-"), "application/postscript"),
    (_prefix(b"\xfe\xff"), "text/plain; charset=utf-16be"),
    (_prefix(b"\xff\xfe"), "text/plain; charset=utf-16le"),
    (_prefix(b"\xef\xbb\xbf"), "text/plain; charset=utf-8"),
    # Images
    (_prefix(b"\x00\x00\x01\x00"), "image/x-icon"),
    (_prefix(b"\x00\x00\x02\x00"), "image/x-icon"),
    (_prefix(b"BM"), "image/bmp"),
    (_prefix(b"GIF87a"), "image/gif"),
    (_prefix(b"GIF89a"), "image/gif"),
    (_masked(b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff\xff\xff", b"RIFF\x00\x00\x00\x00WEBPVP"), "image/webp"),
    (_prefix(b"\x89PNG\r\n\x1a\n"), "image/png"),
    (_prefix(b"\xff\xd8\xff"), "image/jpeg"),
    # Audio and video
    (_masked(b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff", b"FORM\x00\x00\x00\x00AIFF"), "audio/aiff"),
    (_prefix(b"ID3"), "audio/mpeg"),
    (_prefix(b"OggS\x00"), "application/ogg"),
    (_prefix(b"MThd\x00\x00\x00\x06"), "audio/midi"),
    (_masked(b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff", b"RIFF\x00\x00\x00\x00AVI "), "video/avi"),
    (_masked(b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff", b"RIFF\x00\x00\x00\x00WAVE"), "audio/wave"),
    (_mp4, "video/mp4"),
    (_prefix(b"\x1aE\xdf\xa3"), "video/webm"),
    # Fonts
    (_prefix(b"\x00\x01\x00\x00"), "font/ttf"),
    (_prefix(b"OTTO"), "font/otf"),
    (_prefix(b"ttcf"), "font/collection"),
    (_prefix(b"wOFF"), "font/woff"),
    (_prefix(b"wOF2"), "font/woff2"),
    # Archives
    (_prefix(b"\x1f\x8b\x08"), "application/x-gzip"),
    (_prefix(b"PK\x03\x04"), "application/zip"),
    (_prefix(b"Rar!\x1a\x07\x00"), "application/x-rar-compressed"),
    (_prefix(b"Rar!\x1a\x07\x01\x00"), "application/x-rar-compressed"),
    (_prefix(b"\x00asm"), "application/wasm"),
]

# Bytes that never appear in text content.
_BINARY_BYTES = frozenset(list(range(0x00, 0x09)) + [0x0B] + list(range(0x0E, 0x1B)) + list(range(0x1C, 0x20)))


def sniff_content_type(data: bytes) -> str:
    """
    Detect the media type of data from at most its first 512 bytes.

    Always returns a valid MIME type, falling back to
    "application/octet-stream" when nothing more specific matches.
    """
    data = data[:SNIFF_LEN]
    for matches, content_type in _SIGNATURES:
        if matches(data):
            return content_type
    if any(byte in _BINARY_BYTES for byte in data):
        return "application/octet-stream"
    return "text/plain; charset=utf-8"


def is_image_type(content_type: str) -> bool:
    return content_type.startswith("image/")
