"""
Logs-bloom model.

A receipt's logs bloom is a 2048-bit filter. For every event log the score
address and each indexed item are added, the item position being part of
the hashed input, so the same value at a different index depth sets
different bits. Data (non-indexed) arguments are never added.
"""
import hashlib
import re
from typing import Iterable, List, Optional, Union

from .models import EventLog, parse_hex_int

LOGS_BLOOM_BITS = 2048
LOGS_BLOOM_BYTES = LOGS_BLOOM_BITS // 8
_ADDRESS_MARKER = 0xFF
_BITS_PER_ITEM = 3

_SIGNATURE_RE = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*\((.*)\)\s*$")


def parse_signature(signature: str) -> List[str]:
    """
    Return the parameter types of an event signature.

    >>> parse_signature("Transfer(Address,Address,int)")
    ['Address', 'Address', 'int']
    """
    match = _SIGNATURE_RE.match(signature or "")
    if not match:
        raise ValueError(f"Invalid event signature: {signature!r}")
    params = match.group(2).strip()
    return [p.strip() for p in params.split(",")] if params else []


def _int_to_bytes(value: int) -> bytes:
    # minimal two's complement, big endian
    length = max(1, (value.bit_length() + 8) // 8)
    return value.to_bytes(length, "big", signed=True)


def address_to_bytes(address: str) -> bytes:
    """``hx``/``cx`` address to its 21-byte form (prefix flag + 20-byte id)."""
    if len(address) != 42 or address[:2] not in ("hx", "cx"):
        raise ValueError(f"Invalid address: {address!r}")
    flag = b"\x01" if address.startswith("cx") else b"\x00"
    return flag + bytes.fromhex(address[2:])


def encode_value(value: Optional[str], type_name: str) -> bytes:
    """Encode a JSON-level event value by its declared type."""
    if value is None:
        return b""
    if type_name in ("int", "bool"):
        return _int_to_bytes(parse_hex_int(value))
    if type_name == "Address":
        return address_to_bytes(value)
    if type_name == "bytes":
        return bytes.fromhex(value[2:] if value.startswith("0x") else value)
    return value.encode("utf-8")


class LogsBloom:
    """Mutable 2048-bit bloom accumulator."""

    def __init__(self, value: int = 0):
        self.value = value

    @classmethod
    def from_hex(cls, text: str) -> "LogsBloom":
        try:
            value = int(text, 16) if text and text not in ("0x", "0X") else 0
        except ValueError as e:
            raise ValueError(f"Logs bloom is not hex: {text!r}") from e
        if value.bit_length() > LOGS_BLOOM_BITS:
            raise ValueError(f"Logs bloom wider than {LOGS_BLOOM_BITS} bits")
        return cls(value)

    def add_bytes(self, data: bytes) -> None:
        digest = hashlib.sha3_256(data).digest()
        for i in range(_BITS_PER_ITEM):
            bit = ((digest[i * 2] << 8) | digest[i * 2 + 1]) % LOGS_BLOOM_BITS
            self.value |= 1 << bit

    def add_event_log(self, event: EventLog) -> None:
        if not event.indexed:
            return
        types = parse_signature(event.indexed[0])
        self.add_bytes(bytes([_ADDRESS_MARKER]) + address_to_bytes(event.score_address))
        self.add_bytes(bytes([0]) + event.indexed[0].encode("utf-8"))
        for position, value in enumerate(event.indexed[1:], start=1):
            type_name = types[position - 1] if position - 1 < len(types) else "str"
            self.add_bytes(bytes([position]) + encode_value(value, type_name))

    def contains(self, other: "LogsBloom") -> bool:
        return self.value & other.value == other.value

    def to_hex(self) -> str:
        return "0x" + self.value.to_bytes(LOGS_BLOOM_BYTES, "big").hex()

    def __eq__(self, other) -> bool:
        return isinstance(other, LogsBloom) and self.value == other.value


def compute_logs_bloom(event_logs: Iterable[EventLog]) -> LogsBloom:
    """Derive the bloom a receipt carrying ``event_logs`` should report."""
    bloom = LogsBloom()
    for event in event_logs:
        bloom.add_event_log(event)
    return bloom


def as_bloom(value: Union[str, LogsBloom]) -> LogsBloom:
    return value if isinstance(value, LogsBloom) else LogsBloom.from_hex(value)
