"""
RPC conformance harness.

Builds the chain/node/channel topology from a properties file, submits
transactions through a channel's JSON-RPC endpoint, waits for their
confirmation and validates receipts, event logs and logs blooms.
"""
from .bloom import LogsBloom, compute_logs_bloom
from .config import HarnessConfig, HarnessSettings, load_config
from .exceptions import (
    ConformanceError, ConfigError, RpcError, FatalRpcError,
    ResultTimeoutError, ValidationError,
)
from .models import (
    ConfirmedTransaction, EventLog, Failure, Receipt, TransactionRequest,
    STATUS_FAILURE, STATUS_SUCCESS,
)
from .poller import ConfirmationPoller
from .properties import count_groups, load_properties, parse_properties
from .rpc import LookupResult, LookupStatus, RpcGateway
from .submitter import TxSubmitter
from .topology import Chain, Channel, Node, Topology, TopologyBuilder, build_topology
from .validator import (
    BloomComparison, check_event_log, compare_bloom, decompose_event_log,
    find_event_logs, validate_confirmed_transaction, validate_receipt,
)
from .wallet import KeyWallet
from .version import __version__

__all__ = [
    "Chain", "Channel", "Node", "Topology", "TopologyBuilder", "build_topology",
    "HarnessConfig", "HarnessSettings", "load_config",
    "parse_properties", "load_properties", "count_groups",
    "KeyWallet",
    "Receipt", "EventLog", "Failure", "ConfirmedTransaction", "TransactionRequest",
    "STATUS_SUCCESS", "STATUS_FAILURE",
    "RpcGateway", "LookupResult", "LookupStatus",
    "TxSubmitter",
    "ConfirmationPoller",
    "validate_receipt", "decompose_event_log", "check_event_log", "compare_bloom",
    "find_event_logs", "validate_confirmed_transaction", "BloomComparison",
    "LogsBloom", "compute_logs_bloom",
    "ConformanceError", "ConfigError", "RpcError", "FatalRpcError",
    "ResultTimeoutError", "ValidationError",
    "__version__",
]
