"""
Flat key/value configuration parsing.

The topology file uses dotted hierarchical keys (``chain0.nid``,
``node0.channel1.name``) in Java properties syntax. This module turns the
file into a plain dictionary and provides the bounded group counting used
by the topology builder.
"""
import logging
from pathlib import Path
from typing import Dict, Tuple, Union

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

# Upper bound on zero-indexed groups (chain0..chainN, node0..nodeN, ...)
MAX_GROUPS = 256

_COMMENT_CHARS = ("#", "!")
_SEPARATORS = ("=", ":")


def _split_entry(line: str) -> Tuple[str, str]:
    """Split a logical line into (key, value) at the first unescaped separator."""
    escaped = False
    for i, ch in enumerate(line):
        if escaped:
            escaped = False
            continue
        if ch == "\\":
            escaped = True
            continue
        if ch in _SEPARATORS or ch.isspace():
            key = line[:i]
            rest = line[i:].lstrip()
            if rest[:1] in _SEPARATORS:
                rest = rest[1:].lstrip()
            return key, rest
    return line, ""


def _unescape(text: str) -> str:
    result = []
    it = iter(text)
    for ch in it:
        if ch != "\\":
            result.append(ch)
            continue
        nxt = next(it, "")
        result.append({"t": "\t", "n": "\n", "r": "\r", "f": "\f"}.get(nxt, nxt))
    return "".join(result)


def parse_properties(text: str) -> Dict[str, str]:
    """
    Parse Java-style properties text into a dictionary.

    Args:
        text: Raw file contents

    Returns:
        Mapping of key to value; later duplicates override earlier ones
    """
    props: Dict[str, str] = {}
    pending = ""
    for raw in text.splitlines():
        line = raw.lstrip()
        if not pending and (not line or line.startswith(_COMMENT_CHARS)):
            continue

        # An odd number of trailing backslashes continues the line
        stripped = line.rstrip("\r")
        trailing = len(stripped) - len(stripped.rstrip("\\"))
        if trailing % 2 == 1:
            pending += stripped[:-1]
            continue

        logical = pending + stripped
        pending = ""
        key, value = _split_entry(logical)
        props[_unescape(key)] = _unescape(value.rstrip())

    if pending:
        key, value = _split_entry(pending)
        props[_unescape(key)] = _unescape(value.rstrip())
    return props


def load_properties(path: Union[str, Path]) -> Dict[str, str]:
    """
    Read a properties file from disk.

    Raises:
        ConfigError: If the file does not exist or cannot be read
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error(f"There is no environment file name={path}")
        raise ConfigError(f"There is no environment file name={path}") from e
    props = parse_properties(text)
    logger.debug(f"Loaded {len(props)} properties from {path}")
    return props


def count_groups(props: Dict[str, str], prefix: str, key: str, limit: int = MAX_GROUPS) -> int:
    """
    Count consecutive zero-indexed groups carrying a mandatory key.

    ``count_groups(props, "chain", "nid")`` checks ``chain0.nid``,
    ``chain1.nid``, ... and stops at the first missing one.

    Args:
        props: Flat configuration namespace
        prefix: Group prefix including any parent path, e.g. ``node0.channel``
        key: Mandatory key inside each group
        limit: Maximum number of groups examined

    Returns:
        Number of groups found (0 when the first group is missing)

    Raises:
        ConfigError: If more than ``limit`` groups are present
    """
    for index in range(limit):
        if props.get(f"{prefix}{index}.{key}") is None:
            return index
    raise ConfigError(f"Too many '{prefix}' groups (limit {limit})")
