#!/usr/bin/env python3
"""
Run the receipt conformance scenarios against a node.

Usage:
    CHAIN_ENV=./data/env.properties python receipt_check.py path/to/event_gen.zip
"""
import sys
import logging

from rpc_conformance import ConformanceError, KeyWallet, load_config
from rpc_conformance.scenarios import (
    Harness, Score, fund_wallets, check_event_log_scenario, check_inter_call_event_log_scenario,
    check_logs_bloom_scenario,
    check_transfer_result_params, check_deploy_result_params, check_call_result_params,
    check_transfer_tx_by_hash, check_call_tx_by_hash,
)


def main():
    """
    Demonstrate a full conformance pass.

    This example shows how to:
    1. Load the topology from CHAIN_ENV
    2. Fund two fresh wallets from the god wallet
    3. Install two event scores and run every receipt scenario
    """
    if len(sys.argv) != 2:
        print("ERROR: path to the event score package is required")
        return 2

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    with open(sys.argv[1], "rb") as f:
        content = f.read()

    try:
        harness = Harness.from_config(load_config())
        owner, caller = KeyWallet.create(), KeyWallet.create()
        fund_wallets(harness, [owner.address, caller.address])
        score = Score.install(harness, owner, content)
        callee = Score.install(harness, owner, content)

        for depth in range(4):
            check_event_log_scenario(score, caller, depth, caller.address)
            check_inter_call_event_log_scenario(score, callee, caller, depth)
            check_logs_bloom_scenario(score, caller, depth)
        check_transfer_result_params(harness, caller)
        check_deploy_result_params(harness, owner, content)
        check_call_result_params(score, caller)
        check_transfer_tx_by_hash(harness, caller)
        check_call_tx_by_hash(score, caller)
    except ConformanceError as e:
        print(f"Conformance check failed: {e}")
        return 1

    print(f"All scenarios passed on {harness.channel.api_url(harness.submitter.version)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
