# src/wsjtx_bridge/net/codec.py
from __future__ import annotations

import json
import struct
from typing import Any, Dict, Tuple

from wsjtx_bridge.net.messages import (
    DECODABLE,
    ENCODABLE,
    MAGIC,
    NULL_STRING_LEN,
    SCHEMA_2,
    AnyWireMsg,
    FieldKind,
    FrameHeader,
    MessageSchema,
    MsgType,
    WireMessage,
    schema_for,
)

Json = Dict[str, Any]


class WireError(RuntimeError):
    code = "wire_error"

    def __init__(self, msg: str, *, code: str | None = None) -> None:
        super().__init__(msg)
        if code is not None:
            self.code = code


class FrameError(WireError):
    code = "bad_magic"


class TruncatedFrameError(WireError):
    code = "truncated_frame"


class UnsupportedTypeError(WireError):
    code = "unsupported_message_type"


class WireEncodeError(WireError):
    code = "encode_failed"


_U32 = struct.Struct(">I")

_FIXED: Dict[FieldKind, struct.Struct] = {
    FieldKind.U8: struct.Struct(">B"),
    FieldKind.U32: _U32,
    FieldKind.U64: struct.Struct(">Q"),
    FieldKind.I32: struct.Struct(">i"),
    FieldKind.F64: struct.Struct(">d"),
}


class _Reader:
    """Cursor over one immutable datagram. Short reads raise TruncatedFrameError."""

    __slots__ = ("_buf", "pos")

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self._buf = memoryview(bytes(data))
        self.pos = 0

    def take(self, n: int) -> memoryview:
        end = self.pos + n
        if end > len(self._buf):
            raise TruncatedFrameError(
                f"need {n} bytes at offset {self.pos}, have {len(self._buf) - self.pos}"
            )
        out = self._buf[self.pos:end]
        self.pos = end
        return out

    def fixed(self, st: struct.Struct) -> Any:
        return st.unpack(self.take(st.size))[0]

    def u32(self) -> int:
        return self.fixed(_U32)

    def boolean(self) -> bool:
        return self.take(1)[0] != 0

    def string(self) -> str:
        n = self.u32()
        if n == NULL_STRING_LEN or n == 0:
            return ""
        return bytes(self.take(n)).decode("utf-8", errors="replace")


def _read_field(r: _Reader, kind: FieldKind) -> Any:
    if kind is FieldKind.STR:
        return r.string()
    if kind is FieldKind.BOOL:
        return r.boolean()
    return r.fixed(_FIXED[kind])


def _read_header(r: _Reader) -> FrameHeader:
    magic = r.u32()
    if magic != MAGIC:
        raise FrameError(f"invalid magic number: {magic:#x}")
    schema = r.u32()
    mtype = r.u32()
    sender_id = r.string()
    return FrameHeader(magic=magic, schema=schema, type=mtype, sender_id=sender_id)


def decode_header(data: bytes) -> Tuple[FrameHeader, int]:
    """Parse only the frame header; returns it with the offset of the first field."""
    r = _Reader(data)
    header = _read_header(r)
    return header, r.pos


def decode_frame(data: bytes) -> Tuple[FrameHeader, AnyWireMsg]:
    r = _Reader(data)
    header = _read_header(r)

    try:
        schema = DECODABLE[MsgType(header.type)]
    except (ValueError, KeyError):
        raise UnsupportedTypeError(f"unsupported message type: {header.type}") from None

    values = {attr: _read_field(r, kind) for attr, _name, kind in schema.fields}
    msg = schema.cls(sender_id=header.sender_id, **values)
    return header, msg  # type: ignore[return-value]


def decode_message(data: bytes) -> AnyWireMsg:
    """Decode one complete datagram. Trailing bytes after the last field are ignored."""
    return decode_frame(data)[1]


# ---------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------

def _write_string(out: bytearray, s: str) -> None:
    # empty strings go out as length 0, never as the null marker
    raw = s.encode("utf-8")
    out += _U32.pack(len(raw))
    out += raw


def _write_field(out: bytearray, kind: FieldKind, value: Any, name: str) -> None:
    if kind is FieldKind.STR:
        if not isinstance(value, str):
            raise WireEncodeError(f"field '{name}' must be str, got {type(value).__name__}", code="invalid_field")
        _write_string(out, value)
        return
    if kind is FieldKind.BOOL:
        out.append(1 if value else 0)
        return
    try:
        out += _FIXED[kind].pack(value)
    except struct.error as e:
        raise WireEncodeError(f"field '{name}' out of range for {kind.value}: {value!r}", code="field_out_of_range") from e


def _encode_with(schema: MessageSchema, msg: WireMessage) -> bytes:
    out = bytearray()
    out += _U32.pack(MAGIC)
    out += _U32.pack(SCHEMA_2)
    out += _U32.pack(int(schema.type))
    _write_string(out, msg.sender_id)
    for attr, name, kind in schema.fields:
        _write_field(out, kind, getattr(msg, attr), name)
    return bytes(out)


def encode_message(msg: WireMessage) -> bytes:
    schema = ENCODABLE.get(type(msg))
    if schema is None:
        raise UnsupportedTypeError(f"unsupported message type for encoding: {type(msg).__name__}")
    return _encode_with(schema, msg)


# ---------------------------------------------------------------------
# JSON view (browser envelope)
# ---------------------------------------------------------------------

def message_fields(msg: WireMessage) -> Json:
    schema = schema_for(msg)
    if schema is None:
        raise UnsupportedTypeError(f"no schema for {type(msg).__name__}")
    d: Json = {"Id": msg.sender_id}
    for attr, name, _kind in schema.fields:
        d[name] = getattr(msg, attr)
    return d


def envelope(msg: WireMessage) -> Json:
    schema = schema_for(msg)
    if schema is None:
        raise UnsupportedTypeError(f"no schema for {type(msg).__name__}")
    return {"type": str(int(schema.type)), "data": message_fields(msg)}


def dumps_envelope(msg: WireMessage) -> str:
    try:
        return json.dumps(envelope(msg), separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except ValueError as e:
        raise WireEncodeError(f"envelope encode failed: {e}") from e
