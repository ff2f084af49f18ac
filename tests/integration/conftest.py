"""Fixtures for end-to-end runs of scripted projects."""

from pathlib import Path

import pytest

PROGRAM = """
version: "1.0"
functions:
  - name: "token::utils::helper"
  - name: "token::tests::test_transfer"
    attributes:
      - name: test
      - name: available_gas
        args:
          - value: 100000
    gas_cost: 2500
  - name: "token::tests::test_oracle_price"
    attributes:
      - name: test
    requires_contracts: ["0x1a"]
  - name: "token::tests::test_oracle_override"
    attributes:
      - name: test
      - name: mock_addresses
        args:
          - name: Oracle
            value: 0x99
    requires_contracts: ["0x99"]
  - name: "token::tests::test_oracle_not_overridden"
    attributes:
      - name: test
      - name: should_panic
        args:
          - name: expected
            value: ["'CONTRACT_NOT_DEPLOYED'"]
    requires_contracts: ["0x99"]
  - name: "token::tests::test_bridged_tokens"
    attributes:
      - name: test
      - name: mock_addresses
        args:
          - name: ERC20
            value: [0x100, "'ETH'"]
          - name: ERC20
            value: [0x200, "'USDC'"]
    requires_contracts: ["256", "0x200"]
  - name: "token::tests::test_expensive"
    attributes:
      - name: test
      - name: available_gas
        args:
          - value: 10
    gas_cost: 50
  - name: "token::tests::test_slow"
    attributes:
      - name: test
      - name: ignore
  - name: "token::tests::test_bad_attributes"
    attributes:
      - name: test
      - name: available_gas
contracts:
  - class_hash: 0x0AC1E
    constructor:
      debug_name: "token::Oracle::__constructor::constructor"
  - class_hash: 0xE2C20
    externals:
      transfer:
        debug_name: "token::ERC20::__external::transfer"
"""


@pytest.fixture
def token_project(tmp_path: Path) -> Path:
    """Scripted token project mocking an oracle globally."""
    (tmp_path / "tests.program.yaml").write_text(PROGRAM)
    (tmp_path / ".addrs_mock.json").write_text('{"Oracle": "26"}')
    return tmp_path
