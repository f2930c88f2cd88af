"""
Property-based tests for the harness.

These tests verify that properties hold true across many random inputs.
"""
from hypothesis import given, settings, strategies as st

from rpc_conformance.bloom import LogsBloom, compute_logs_bloom
from rpc_conformance.models import EventLog, parse_hex_int, to_hex
from rpc_conformance.properties import parse_properties
from rpc_conformance.submitter import serialize_transaction, transaction_hash
from rpc_conformance.topology import TopologyBuilder
from rpc_conformance.validator import decompose_event_log

from tests.test_helpers import StubWallets, make_props

SIGNATURE = "event_log(bool,Address,int,bytes,str)"
SCORE = "cx" + "1" * 40

key_strategy = st.text(min_size=1, max_size=20, alphabet=st.characters(
    whitelist_categories=("Lu", "Ll", "Nd"),
    whitelist_characters="._-",
))
value_strategy = st.text(max_size=40, alphabet=st.characters(
    whitelist_categories=("Lu", "Ll", "Nd", "Zs"),
    whitelist_characters="/:.-_",
))
json_leaf = st.one_of(st.none(), st.text(max_size=20))
json_value = st.recursive(
    json_leaf,
    lambda children: st.one_of(
        st.lists(children, max_size=3),
        st.dictionaries(st.text(min_size=1, max_size=8), children, max_size=3),
    ),
    max_leaves=10,
)
event_values = st.tuples(
    st.sampled_from(["0x0", "0x1"]),
    st.sampled_from(["hx" + "2" * 40, "cx" + "3" * 40]),
    st.integers(min_value=-(2 ** 64), max_value=2 ** 64).map(to_hex),
    st.binary(max_size=8).map(lambda b: "0x" + b.hex()),
    st.one_of(st.none(), st.text(max_size=20)),
).map(list)


@settings(max_examples=50)
@given(st.integers(min_value=-(2 ** 256), max_value=2 ** 256))
def test_hex_quantity_round_trip(value):
    assert parse_hex_int(to_hex(value)) == value


@settings(max_examples=50)
@given(st.dictionaries(key_strategy, value_strategy, max_size=10))
def test_properties_round_trip(entries):
    text = "\n".join(f"{k}={v.strip()}" for k, v in entries.items())
    parsed = parse_properties(text)
    assert parsed == {k: v.strip() for k, v in entries.items()}


@settings(max_examples=50)
@given(st.dictionaries(st.text(min_size=1, max_size=10), json_value, max_size=6))
def test_serialization_ignores_insertion_order(params):
    reordered = dict(reversed(list(params.items())))
    assert serialize_transaction(params) == serialize_transaction(reordered)
    assert transaction_hash(params) == transaction_hash(reordered)


@settings(max_examples=50)
@given(st.integers(min_value=0, max_value=5), event_values)
def test_decomposition_counts(depth, values):
    event = EventLog(score_address=SCORE, indexed=[SIGNATURE] + values[:depth], data=values[depth:])
    _, indexed, data = decompose_event_log(event)
    assert len(indexed) == depth
    assert len(indexed) + len(data) == 5


@settings(max_examples=50)
@given(st.integers(min_value=0, max_value=5), event_values, event_values)
def test_bloom_ignores_data_arguments(depth, values, other):
    mixed = values[:depth] + other[depth:]
    a = EventLog(score_address=SCORE, indexed=[SIGNATURE] + values[:depth], data=values[depth:])
    b = EventLog(score_address=SCORE, indexed=[SIGNATURE] + mixed[:depth], data=mixed[depth:])
    assert compute_logs_bloom([a]) == compute_logs_bloom([b])


@settings(max_examples=30)
@given(st.lists(event_values, min_size=1, max_size=4))
def test_bloom_contains_every_event(all_values):
    events = [EventLog(score_address=SCORE, indexed=[SIGNATURE] + v[:2], data=v[2:]) for v in all_values]
    combined = compute_logs_bloom(events)
    for event in events:
        assert combined.contains(compute_logs_bloom([event]))
    assert LogsBloom.from_hex(combined.to_hex()) == combined


@settings(max_examples=20, deadline=None)
@given(
    chains=st.integers(min_value=1, max_value=4),
    nodes=st.integers(min_value=1, max_value=3),
    channels=st.integers(min_value=1, max_value=4),
)
def test_topology_is_consistent(chains, nodes, channels):
    wallets = StubWallets()
    builder = TopologyBuilder(wallet_loader=wallets.load, wallet_factory=wallets.create)
    topology = builder.build(make_props(chains=chains, nodes=nodes, channels_per_node=channels))

    assert len(topology.chains) == chains
    assert len(topology.nodes) == nodes
    for node in topology.nodes:
        assert len(node.channels) == channels
        for channel in node.channels:
            assert channel.node is node
            assert channel in channel.chain.channels
    assert sum(len(c.channels) for c in topology.chains) == nodes * channels
