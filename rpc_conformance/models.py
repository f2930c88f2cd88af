"""
Data models for receipts, event logs and confirmed transactions.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

STATUS_SUCCESS = 1
STATUS_FAILURE = 0

DATA_TYPES = ("message", "call", "deploy", "patch")


def parse_hex_int(value: Any) -> Any:
    """Convert a ``0x``-prefixed quantity to int, leaving other values untouched."""
    if isinstance(value, str):
        text = value.strip()
        negative = text.startswith("-")
        if negative:
            text = text[1:]
        if text.lower().startswith("0x"):
            result = int(text, 16)
            return -result if negative else result
    return value


def to_hex(value: int) -> str:
    """Format an int as a node quantity (``0x..``)."""
    return hex(value)


class _NodeModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class EventLog(_NodeModel):
    """Event log emitted by a score; indexed[0] is the event signature."""
    score_address: str = Field(..., alias="scoreAddress")
    indexed: List[Optional[str]]
    data: List[Optional[str]] = Field(default_factory=list)

    @property
    def signature(self) -> Optional[str]:
        return self.indexed[0] if self.indexed else None


class Failure(_NodeModel):
    """Failure detail attached to an unsuccessful receipt."""
    code: Optional[int] = None
    message: Optional[str] = None

    @field_validator("code", mode="before")
    @classmethod
    def _hex_code(cls, v):
        return parse_hex_int(v)


class Receipt(_NodeModel):
    """Transaction result as returned by ``icx_getTransactionResult``."""
    status: int
    from_address: Optional[str] = Field(None, alias="from")
    to_address: Optional[str] = Field(None, alias="to")
    tx_hash: Optional[str] = Field(None, alias="txHash")
    tx_index: Optional[int] = Field(None, alias="txIndex")
    block_height: Optional[int] = Field(None, alias="blockHeight")
    block_hash: Optional[str] = Field(None, alias="blockHash")
    cumulative_step_used: Optional[int] = Field(None, alias="cumulativeStepUsed")
    step_used: Optional[int] = Field(None, alias="stepUsed")
    step_price: Optional[int] = Field(None, alias="stepPrice")
    score_address: Optional[str] = Field(None, alias="scoreAddress")
    event_logs: Optional[List[EventLog]] = Field(None, alias="eventLogs")
    logs_bloom: Optional[str] = Field(None, alias="logsBloom")
    failure: Optional[Failure] = None

    @field_validator(
        "status", "tx_index", "block_height", "cumulative_step_used", "step_used", "step_price",
        mode="before",
    )
    @classmethod
    def _hex_quantities(cls, v):
        return parse_hex_int(v)

    @property
    def succeeded(self) -> bool:
        return self.status == STATUS_SUCCESS


class ConfirmedTransaction(_NodeModel):
    """Transaction record as returned by ``icx_getTransactionByHash``."""
    version: Optional[int] = None
    from_address: Optional[str] = Field(None, alias="from")
    to_address: Optional[str] = Field(None, alias="to")
    value: Optional[int] = None
    step_limit: Optional[int] = Field(None, alias="stepLimit")
    timestamp: Optional[int] = None
    nid: Optional[int] = None
    nonce: Optional[int] = None
    tx_hash: Optional[str] = Field(None, alias="txHash")
    tx_index: Optional[int] = Field(None, alias="txIndex")
    block_height: Optional[int] = Field(None, alias="blockHeight")
    block_hash: Optional[str] = Field(None, alias="blockHash")
    signature: Optional[str] = None
    data_type: Optional[str] = Field(None, alias="dataType")
    data: Optional[Any] = None

    @field_validator(
        "version", "value", "step_limit", "timestamp", "nid", "nonce", "tx_index", "block_height",
        mode="before",
    )
    @classmethod
    def _hex_quantities(cls, v):
        return parse_hex_int(v)


class TransactionRequest(BaseModel):
    """Unsigned transaction as built by the submitter."""
    model_config = ConfigDict(frozen=True)

    version: int = 3
    sender: str
    receiver: str
    nid: int
    step_limit: int
    timestamp: int
    value: Optional[int] = None
    nonce: Optional[int] = None
    data_type: Optional[str] = None
    data: Optional[Any] = None

    @field_validator("data_type")
    @classmethod
    def _known_data_type(cls, v):
        if v is not None and v not in DATA_TYPES:
            raise ValueError(f"IllegalDataType(type={v})")
        return v

    def to_params(self) -> Dict[str, Any]:
        """Wire parameters for ``icx_sendTransaction`` without the signature."""
        params: Dict[str, Any] = {
            "version": to_hex(self.version),
            "from": self.sender,
            "to": self.receiver,
            "stepLimit": to_hex(self.step_limit),
            "timestamp": to_hex(self.timestamp),
            "nid": to_hex(self.nid),
        }
        if self.value is not None:
            params["value"] = to_hex(self.value)
        if self.nonce is not None:
            params["nonce"] = to_hex(self.nonce)
        if self.data_type is not None:
            params["dataType"] = self.data_type
            if self.data is not None:
                params["data"] = self.data
        return params
