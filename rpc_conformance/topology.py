"""
Chain / node / channel topology.

The topology is built once from the flat configuration namespace and is
read-only afterwards. Construction is all-or-nothing: any missing mandatory
key, unreadable wallet or dangling chain reference raises ConfigError.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

from .exceptions import ConfigError
from .properties import count_groups
from .wallet import KeyWallet

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL_NAME = "default"
DEFAULT_API_VERSION = 3

WalletLoader = Callable[[Path, str], KeyWallet]


@dataclass(eq=False)
class Chain:
    """A logical chain identified by its network id."""
    nid: int
    god_wallet: KeyWallet
    governor_wallet: Optional[KeyWallet]
    channels: Tuple["Channel", ...] = ()


@dataclass(eq=False)
class Node:
    """A node reachable at a base URL."""
    url: str
    wallet: Optional[KeyWallet] = None
    channels: Tuple["Channel", ...] = ()


@dataclass(eq=False)
class Channel:
    """A named RPC endpoint on a node, bound to one chain."""
    node: Node
    name: str
    chain: Chain

    def api_url(self, version: int = DEFAULT_API_VERSION) -> str:
        """Endpoint address: ``<node url>/api/v<version>/<channel name>``."""
        return f"{self.node.url}/api/v{version}/{self.name}"


@dataclass(frozen=True)
class Topology:
    """Immutable view over all parsed chains and nodes."""
    chains: Tuple[Chain, ...]
    nodes: Tuple[Node, ...]

    def chain(self, nid: int) -> Chain:
        """
        Look up a chain by network id.

        Raises:
            KeyError: If no chain carries the id
        """
        for chain in self.chains:
            if chain.nid == nid:
                return chain
        raise KeyError(f"no chain for nid {nid:#x}")

    def default_channel(self) -> Channel:
        """First channel of the first node, the usual target of a test run."""
        return self.nodes[0].channels[0]


def parse_nid(value: str, key: str) -> int:
    """Parse a network id written in decimal or 0x-prefixed hex."""
    try:
        return int(value.strip(), 0)
    except ValueError as e:
        raise ConfigError(f"Invalid network id for '{key}': {value!r}") from e


class TopologyBuilder:
    """
    Builds a Topology from a flat key/value namespace.

    Wallet paths are resolved relative to ``data_dir``. The wallet loader and
    factory are injectable so topology parsing can be exercised without
    keystore files.
    """

    def __init__(
        self,
        data_dir: Union[str, Path] = ".",
        wallet_loader: Optional[WalletLoader] = None,
        wallet_factory: Optional[Callable[[], KeyWallet]] = None,
    ):
        self.data_dir = Path(data_dir)
        self.wallet_loader = wallet_loader or KeyWallet.load
        self.wallet_factory = wallet_factory or KeyWallet.create

    def build(self, props: Dict[str, str]) -> Topology:
        """
        Build the topology.

        Args:
            props: Flat configuration namespace

        Returns:
            The validated topology

        Raises:
            ConfigError: On any missing or inconsistent entry
        """
        chains = self._read_chains(props)
        pending: Dict[int, List[Channel]] = {nid: [] for nid in chains}
        nodes = self._read_nodes(props, chains, pending)

        for nid, chain in chains.items():
            chain.channels = tuple(pending[nid])

        topology = Topology(chains=tuple(chains.values()), nodes=tuple(nodes))
        logger.info(
            f"Topology ready: {len(topology.chains)} chain(s), {len(topology.nodes)} node(s)"
        )
        return topology

    def _load_wallet(self, path: str, password: Optional[str], what: str) -> KeyWallet:
        full_path = self.data_dir / path
        try:
            return self.wallet_loader(full_path, password or "")
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"FAIL to read {what} wallet. path = {full_path}")
            raise ConfigError(f"FAIL to read {what} wallet. path = {full_path}") from e

    def _read_chains(self, props: Dict[str, str]) -> Dict[int, Chain]:
        count = count_groups(props, "chain", "nid")
        if count == 0:
            raise ConfigError("FAIL. no nid for chain (missing 'chain0.nid')")

        chains: Dict[int, Chain] = {}
        for i in range(count):
            name = f"chain{i}"
            nid = parse_nid(props[f"{name}.nid"], f"{name}.nid")
            if nid in chains:
                raise ConfigError(f"Duplicate network id {nid:#x} in '{name}.nid'")

            god_path = props.get(f"{name}.godWallet")
            if not god_path:
                raise ConfigError(f"FAIL. no god wallet for chain (missing '{name}.godWallet')")
            god_wallet = self._load_wallet(god_path, props.get(f"{name}.godPassword"), "god")

            governor_wallet = None
            gov_path = props.get(f"{name}.govWallet")
            if gov_path is None:
                try:
                    governor_wallet = self.wallet_factory()
                except Exception as e:
                    raise ConfigError("FAIL to create wallet for governor!") from e
            else:
                # TODO: attach the loaded governor wallet once its intended use is settled
                self._load_wallet(gov_path, props.get(f"{name}.govPassword"), "governor")
                logger.warning(
                    f"Governor wallet for {name} was read from {gov_path} but is not attached to the chain"
                )

            chains[nid] = Chain(nid=nid, god_wallet=god_wallet, governor_wallet=governor_wallet)
            logger.debug(f"Parsed {name}: nid={nid:#x}")
        return chains

    def _read_nodes(
        self,
        props: Dict[str, str],
        chains: Dict[int, Chain],
        pending: Dict[int, List[Channel]],
    ) -> List[Node]:
        count = count_groups(props, "node", "url")
        if count == 0:
            raise ConfigError("FAIL. no node url (missing 'node0.url')")

        nodes = []
        for i in range(count):
            name = f"node{i}"
            url = props[f"{name}.url"].strip().rstrip("/")
            if not url:
                raise ConfigError(f"FAIL. empty node url in '{name}.url'")

            wallet = None
            wallet_path = props.get(f"{name}.wallet")
            if wallet_path is not None:
                wallet = self._load_wallet(wallet_path, props.get(f"{name}.walletPassword"), "node")

            node = Node(url=url, wallet=wallet)
            node.channels = tuple(self._read_channels(props, name, node, chains, pending))
            nodes.append(node)
            logger.debug(f"Parsed {name}: url={url} channels={len(node.channels)}")
        return nodes

    def _read_channels(
        self,
        props: Dict[str, str],
        node_name: str,
        node: Node,
        chains: Dict[int, Chain],
        pending: Dict[int, List[Channel]],
    ) -> List[Channel]:
        prefix = f"{node_name}.channel"
        count = count_groups(props, prefix, "nid")
        if count == 0:
            raise ConfigError(f"FAIL. no nid for channel (missing '{prefix}0.nid')")

        channels = []
        for j in range(count):
            key = f"{prefix}{j}.nid"
            nid = parse_nid(props[key], key)
            chain = chains.get(nid)
            if chain is None:
                raise ConfigError(f"FAIL. no chain for the {props[key]} ('{key}')")
            name = props.get(f"{prefix}{j}.name") or DEFAULT_CHANNEL_NAME
            channel = Channel(node=node, name=name, chain=chain)
            channels.append(channel)
            pending[nid].append(channel)
        return channels


def build_topology(props: Dict[str, str], data_dir: Union[str, Path] = ".") -> Topology:
    """Build a topology with the default keystore-backed wallet loader."""
    return TopologyBuilder(data_dir).build(props)
