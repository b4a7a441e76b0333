"""Non-executing unpacker for Dean Edwards packed JavaScript.

Format::

    eval(function(p,a,c,k,e,d){...}('payload',radix,count,'w0|w1|...'.split('|'),0,{}))

The packer replaces every identifier of the original source with its
index in the symbol dictionary, written in base *radix* (36 in practice).
Unpacking reverses the substitution: for each index, from the highest to
the lowest, whole-word occurrences of the encoded index are replaced by
the dictionary entry.  Empty entries mean "token stands for itself" and
are skipped.  Nothing is ever evaluated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from extractarr.domain.exceptions import PatternNotFoundError, PayloadDecodeError

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"

_EVAL_RE = re.compile(
    r"eval\s*\(\s*function\s*\(\s*p\s*,\s*a\s*,\s*c\s*,\s*k\s*,\s*e\s*,\s*[dr]\s*\)"
)

# Arguments of the outer call: ('payload', radix, count, 'dict'.split('|')
_ARGS_RE = re.compile(
    r"}\s*\(\s*'(.*?)',\s*(\d+),\s*(\d+),\s*'(.*?)'\s*\.split\(\s*'\|'\s*\)",
    re.DOTALL,
)


@dataclass(frozen=True)
class PackedArgs:
    """The serialized arguments of a packed block."""

    payload: str
    radix: int
    count: int
    symbols: list[str]


def encode_radix(num: int, radix: int) -> str:
    """Encode a non-negative integer the way the packer's ``e(c)`` does."""
    if num < radix:
        return _ALPHABET[num]
    return encode_radix(num // radix, radix) + _ALPHABET[num % radix]


def find_packed_block(html: str) -> str | None:
    """Return the first packed block in *html* (from ``eval`` onwards)."""
    match = _EVAL_RE.search(html)
    if match is None:
        return None
    tail = _ARGS_RE.search(html, match.end())
    if tail is None:
        return None
    return html[match.start() : tail.end()]


def parse_packed_args(packed: str) -> PackedArgs:
    """Extract payload, radix, count and symbol dictionary.

    Raises:
        PatternNotFoundError: *packed* has no packer argument list.
        PayloadDecodeError: radix outside 2..62.
    """
    match = _ARGS_RE.search(packed)
    if match is None:
        raise PatternNotFoundError("packed arguments not found")

    radix = int(match.group(2))
    if not 2 <= radix <= len(_ALPHABET):
        raise PayloadDecodeError(f"unsupported packer radix: {radix}")

    # Payload is a single-quoted JS string literal
    payload = match.group(1).replace("\\\\", "\\").replace("\\'", "'")
    return PackedArgs(
        payload=payload,
        radix=radix,
        count=int(match.group(3)),
        symbols=match.group(4).split("|"),
    )


def unpack_args(args: PackedArgs) -> str:
    """Reverse the token substitution described by *args*."""
    source = args.payload
    index = min(args.count, len(args.symbols))
    while index > 0:
        index -= 1
        replacement = args.symbols[index]
        if not replacement:
            continue
        token = re.escape(encode_radix(index, args.radix))
        source = re.sub(rf"\b{token}\b", lambda _m, r=replacement: r, source)
    return source


def unpack(packed: str) -> str:
    """Unpack a packed block (or any text containing the argument list).

    Raises:
        PatternNotFoundError: no packer arguments were found.
        PayloadDecodeError: the arguments are malformed.
    """
    return unpack_args(parse_packed_args(packed))


def unpack_html(html: str) -> str:
    """Locate the first packed block in *html* and unpack it.

    Raises:
        PatternNotFoundError: no packed block in *html*.
    """
    block = find_packed_block(html)
    if block is None:
        raise PatternNotFoundError("packed eval block not found")
    return unpack(block)
