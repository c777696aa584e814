"""Pydantic models for commands issued by browser clients.

Wire shape:
  {"type": "reply" | "halt", "data": {...}}

Field names follow the JSON names the browser UI sends. Missing fields take
their zero value, the same as an unset field in a WSJT-X message. Field
types are strict: a string where a number belongs, or a number where a bool
belongs, rejects the whole command.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from wsjtx_bridge.net.messages import HaltTx, Reply

U8_MAX = 0xFF
U32_MAX = 0xFFFFFFFF
I32_MIN = -(2**31)
I32_MAX = 2**31 - 1


class CommandEnvelope(BaseModel):
    type: str = Field(..., description="Command tag, e.g. 'reply' or 'halt'")
    data: Optional[Any] = Field(default=None, description="Command payload object")


class ReplyCommand(BaseModel):
    """Ask WSJT-X to answer a decoded message (double-click in the band activity)."""

    model_config = ConfigDict(strict=True)

    time: int = Field(default=0, ge=0, le=U32_MAX, validation_alias="Time")
    snr: int = Field(default=0, ge=I32_MIN, le=I32_MAX, validation_alias="SNR")
    delta_time: float = Field(default=0.0, allow_inf_nan=False, validation_alias="DeltaTime")
    delta_freq: int = Field(
        default=0,
        ge=0,
        le=U32_MAX,
        validation_alias=AliasChoices("DeltaFrequency", "DeltaFreq"),
    )
    mode: str = Field(default="", validation_alias="Mode")
    message: str = Field(default="", validation_alias="Message")
    low_conf: bool = Field(default=False, validation_alias=AliasChoices("LowConfidence", "LowConf"))
    modifiers: int = Field(default=0, ge=0, le=U8_MAX, validation_alias="Modifiers")

    def to_message(self, sender_id: str) -> Reply:
        return Reply(
            sender_id=sender_id,
            time=self.time,
            snr=self.snr,
            delta_time=self.delta_time,
            delta_freq=self.delta_freq,
            mode=self.mode,
            message=self.message,
            low_conf=self.low_conf,
            modifiers=self.modifiers,
        )


class HaltCommand(BaseModel):
    model_config = ConfigDict(strict=True)

    auto_tx_only: bool = Field(default=False, validation_alias="AutoTxOnly")

    def to_message(self, sender_id: str) -> HaltTx:
        return HaltTx(sender_id=sender_id, auto_tx_only=self.auto_tx_only)


COMMAND_MODELS = {
    "reply": ReplyCommand,
    "halt": HaltCommand,
}
