from __future__ import annotations

import struct
from typing import Optional

from wsjtx_bridge.net.messages import MAGIC, NULL_STRING_LEN, SCHEMA_3, MsgType


def qstring(s: Optional[str]) -> bytes:
    """QByteArray-style string. None -> null marker.

    TEST ONLY.
    """
    if s is None:
        return struct.pack(">I", NULL_STRING_LEN)
    raw = s.encode("utf-8")
    return struct.pack(">I", len(raw)) + raw


def header(mtype: int, sender_id: Optional[str] = "WSJT-X", *, schema: int = SCHEMA_3, magic: int = MAGIC) -> bytes:
    return struct.pack(">III", magic, schema, int(mtype)) + qstring(sender_id)


def heartbeat_frame(
    *,
    sender_id: Optional[str] = "WSJT-X",
    max_schema: int = 3,
    version: Optional[str] = "2.6.1",
    revision: Optional[str] = "abc123",
    schema: int = SCHEMA_3,
) -> bytes:
    return (
        header(MsgType.HEARTBEAT, sender_id, schema=schema)
        + struct.pack(">I", max_schema)
        + qstring(version)
        + qstring(revision)
    )


def decode_frame_bytes(
    *,
    sender_id: Optional[str] = "WSJT-X",
    new: bool = True,
    time_ms: int = 43_200_000,
    snr: int = -10,
    delta_time: float = 0.2,
    delta_frequency: int = 1500,
    mode: Optional[str] = "~",
    message: Optional[str] = "CQ TEST K1ABC",
    low_confidence: bool = False,
    off_air: bool = False,
    schema: int = SCHEMA_3,
) -> bytes:
    return (
        header(MsgType.DECODE, sender_id, schema=schema)
        + struct.pack(">?IidI", new, time_ms, snr, delta_time, delta_frequency)
        + qstring(mode)
        + qstring(message)
        + struct.pack(">??", low_confidence, off_air)
    )


def status_frame(
    *,
    sender_id: Optional[str] = "WSJT-X",
    dial_frequency: int = 14_074_000,
    mode: Optional[str] = "FT8",
    dx_call: Optional[str] = "K1ABC",
    report: Optional[str] = "-10",
    tx_mode: Optional[str] = "FT8",
    tx_enabled: bool = False,
    transmitting: bool = False,
    decoding: bool = True,
    rx_df: int = 1200,
    tx_df: int = 1500,
    de_call: Optional[str] = "N0CALL",
    de_grid: Optional[str] = "FN42",
    dx_grid: Optional[str] = None,
    tx_watchdog: bool = False,
    sub_mode: Optional[str] = None,
    fast_mode: bool = False,
    special_op_mode: int = 0,
    frequency_tolerance: int = 0xFFFFFFFF,
    tr_period: int = 15,
    config_name: Optional[str] = "Default",
    tx_message: Optional[str] = "",
    schema: int = SCHEMA_3,
) -> bytes:
    return (
        header(MsgType.STATUS, sender_id, schema=schema)
        + struct.pack(">Q", dial_frequency)
        + qstring(mode)
        + qstring(dx_call)
        + qstring(report)
        + qstring(tx_mode)
        + struct.pack(">???II", tx_enabled, transmitting, decoding, rx_df, tx_df)
        + qstring(de_call)
        + qstring(de_grid)
        + qstring(dx_grid)
        + struct.pack(">?", tx_watchdog)
        + qstring(sub_mode)
        + struct.pack(">?BII", fast_mode, special_op_mode, frequency_tolerance, tr_period)
        + qstring(config_name)
        + qstring(tx_message)
    )
