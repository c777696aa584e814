from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, Tuple, Type, Union

MAGIC = 0xADBCCBDA
SCHEMA_2 = 2
SCHEMA_3 = 3

# QByteArray length prefix of a null string
NULL_STRING_LEN = 0xFFFFFFFF

SenderId = str


class MsgType(IntEnum):
    HEARTBEAT = 0
    STATUS = 1
    DECODE = 2
    CLEAR = 3
    REPLY = 4
    QSO_LOGGED = 5
    CLOSE = 6
    REPLAY = 7
    HALT_TX = 8
    FREE_TEXT = 9
    WSPR_DECODE = 10
    LOCATION = 11
    LOGGED_ADIF = 12
    HIGHLIGHT_CALLSIGN = 13
    SWITCH_CONFIGURATION = 14
    CONFIGURE = 15
    ANNOTATION_INFO = 16


class FieldKind(str, Enum):
    U8 = "u8"
    U32 = "u32"
    U64 = "u64"
    I32 = "i32"
    F64 = "f64"
    BOOL = "bool"
    STR = "str"


@dataclass(frozen=True, slots=True)
class FrameHeader:
    magic: int
    schema: int
    type: int
    sender_id: SenderId


@dataclass(frozen=True, slots=True)
class WireMessage:
    sender_id: SenderId


@dataclass(frozen=True, slots=True)
class Heartbeat(WireMessage):
    max_schema: int
    version: str
    revision: str


@dataclass(frozen=True, slots=True)
class Status(WireMessage):
    dial_frequency: int
    mode: str
    dx_call: str
    report: str
    tx_mode: str
    tx_enabled: bool
    transmitting: bool
    decoding: bool
    rx_df: int
    tx_df: int
    de_call: str
    de_grid: str
    dx_grid: str
    tx_watchdog: bool
    sub_mode: str
    fast_mode: bool
    special_op_mode: int
    frequency_tolerance: int
    tr_period: int
    config_name: str
    tx_message: str


@dataclass(frozen=True, slots=True)
class Decode(WireMessage):
    new: bool
    time: int  # milliseconds since midnight
    snr: int
    delta_time: float
    delta_frequency: int
    mode: str
    message: str
    low_confidence: bool
    off_air: bool


@dataclass(frozen=True, slots=True)
class Reply(WireMessage):
    time: int
    snr: int
    delta_time: float
    delta_freq: int
    mode: str
    message: str
    low_conf: bool
    modifiers: int


@dataclass(frozen=True, slots=True)
class HaltTx(WireMessage):
    auto_tx_only: bool


AnyWireMsg = Union[Heartbeat, Status, Decode, Reply, HaltTx]


# (attribute, json name, wire kind)
FieldSpec = Tuple[str, str, FieldKind]


@dataclass(frozen=True, slots=True)
class MessageSchema:
    type: MsgType
    cls: Type[WireMessage]
    fields: Tuple[FieldSpec, ...]


K = FieldKind

HEARTBEAT_SCHEMA = MessageSchema(
    type=MsgType.HEARTBEAT,
    cls=Heartbeat,
    fields=(
        ("max_schema", "MaxSchema", K.U32),
        ("version", "Version", K.STR),
        ("revision", "Revision", K.STR),
    ),
)

STATUS_SCHEMA = MessageSchema(
    type=MsgType.STATUS,
    cls=Status,
    fields=(
        ("dial_frequency", "DialFrequency", K.U64),
        ("mode", "Mode", K.STR),
        ("dx_call", "DXCall", K.STR),
        ("report", "Report", K.STR),
        ("tx_mode", "TxMode", K.STR),
        ("tx_enabled", "TxEnabled", K.BOOL),
        ("transmitting", "Transmitting", K.BOOL),
        ("decoding", "Decoding", K.BOOL),
        ("rx_df", "RxDF", K.U32),
        ("tx_df", "TxDF", K.U32),
        ("de_call", "DECall", K.STR),
        ("de_grid", "DEGrid", K.STR),
        ("dx_grid", "DXGrid", K.STR),
        ("tx_watchdog", "TxWatchdog", K.BOOL),
        ("sub_mode", "SubMode", K.STR),
        ("fast_mode", "FastMode", K.BOOL),
        ("special_op_mode", "SpecialOpMode", K.U8),
        ("frequency_tolerance", "FrequencyTolerance", K.U32),
        ("tr_period", "TRPeriod", K.U32),
        ("config_name", "ConfigName", K.STR),
        ("tx_message", "TxMessage", K.STR),
    ),
)

DECODE_SCHEMA = MessageSchema(
    type=MsgType.DECODE,
    cls=Decode,
    fields=(
        ("new", "New", K.BOOL),
        ("time", "Time", K.U32),
        ("snr", "SNR", K.I32),
        ("delta_time", "DeltaTime", K.F64),
        ("delta_frequency", "DeltaFrequency", K.U32),
        ("mode", "Mode", K.STR),
        ("message", "Message", K.STR),
        ("low_confidence", "LowConfidence", K.BOOL),
        ("off_air", "OffAir", K.BOOL),
    ),
)

REPLY_SCHEMA = MessageSchema(
    type=MsgType.REPLY,
    cls=Reply,
    fields=(
        ("time", "Time", K.U32),
        ("snr", "SNR", K.I32),
        ("delta_time", "DeltaTime", K.F64),
        ("delta_freq", "DeltaFreq", K.U32),
        ("mode", "Mode", K.STR),
        ("message", "Message", K.STR),
        ("low_conf", "LowConf", K.BOOL),
        ("modifiers", "Modifiers", K.U8),
    ),
)

HALT_TX_SCHEMA = MessageSchema(
    type=MsgType.HALT_TX,
    cls=HaltTx,
    fields=(("auto_tx_only", "AutoTxOnly", K.BOOL),),
)


# Tags the bridge accepts from WSJT-X.
DECODABLE: Dict[MsgType, MessageSchema] = {
    MsgType.HEARTBEAT: HEARTBEAT_SCHEMA,
    MsgType.STATUS: STATUS_SCHEMA,
    MsgType.DECODE: DECODE_SCHEMA,
}

# Variants the bridge sends to WSJT-X.
ENCODABLE: Dict[Type[WireMessage], MessageSchema] = {
    Heartbeat: HEARTBEAT_SCHEMA,
    Reply: REPLY_SCHEMA,
    HaltTx: HALT_TX_SCHEMA,
}

SCHEMAS_BY_CLASS: Dict[Type[WireMessage], MessageSchema] = {
    s.cls: s for s in (HEARTBEAT_SCHEMA, STATUS_SCHEMA, DECODE_SCHEMA, REPLY_SCHEMA, HALT_TX_SCHEMA)
}


def schema_for(msg: WireMessage) -> MessageSchema | None:
    return SCHEMAS_BY_CLASS.get(type(msg))


def msg_type_of(msg: WireMessage) -> MsgType:
    s = schema_for(msg)
    if s is None:
        raise KeyError(type(msg).__name__)
    return s.type
