"""Contract address mocking.

Tests may call contracts that are never deployed by the test itself. Mocked
addresses bind such addresses to the class hash of a compiled contract in the
simulated state handed to the virtual machine. Addresses come from a global
``.addrs_mock.json`` file at the project root, and from the
``#[mock_addresses(...)]`` attribute of each test.
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from contract_test_runner.errors import MockConfigError
from contract_test_runner.felt import to_felt
from contract_test_runner.models.config import (
    InstanceAddresses,
    MockConfig,
    SingletonAddress,
)
from contract_test_runner.models.contract import ContractInfo

log = logging.getLogger(__name__)

MOCK_FILE_NAME = ".addrs_mock.json"

_MOCK_FILE_ADAPTER = TypeAdapter(dict[str, str | dict[str, str]])

_DIGITS = {
    10: re.compile(r"[0-9]+"),
    16: re.compile(r"[0-9a-fA-F]+"),
}


@dataclass(kw_only=True)
class SimulatedState:
    """Addresses of deployed contracts, mapped to their class hash."""

    contract_addresses: dict[int, int] = field(default_factory=dict)

    def set_contract_address(self, address: int, class_hash: int) -> None:
        """Deploy the class at the given address."""
        self.contract_addresses[address] = class_hash

    def class_hash_at(self, address: int) -> int | None:
        """Class deployed at the address, if any."""
        return self.contract_addresses.get(address)


def load_mocked_addresses(project_root: Path) -> Mapping[str, MockConfig]:
    """Load the global mocked addresses file of a project.

    Args:
        project_root: Directory where ``.addrs_mock.json`` is expected

    Returns:
        Mock configuration keyed by contract name, empty if there is no file

    Raises:
        MockConfigError: If the file is unreadable or malformed

    """
    path = project_root / MOCK_FILE_NAME
    if not path.is_file():
        log.info(
            "No contract address to be mocked, skip. "
            "If it's not intentional, add '%s' file.",
            MOCK_FILE_NAME,
        )
        return {}

    try:
        content = path.read_text()
    except (OSError, UnicodeDecodeError) as exc:
        raise MockConfigError(f"Mocked addresses file is not readable: {path}") from exc

    return parse_mocked_addresses(content)


def parse_mocked_addresses(content: str) -> Mapping[str, MockConfig]:
    """Parse the JSON content of a mocked addresses file.

    Raises:
        MockConfigError: If the content is not in the expected format

    """
    try:
        raw = _MOCK_FILE_ADAPTER.validate_json(content)
    except ValidationError as exc:
        raise MockConfigError(
            f"Mocked addresses file is not in the expected format: {exc}"
        ) from exc

    mocks: dict[str, MockConfig] = {}
    for name, value in raw.items():
        if isinstance(value, str):
            mocks[name] = SingletonAddress(address=value)
        else:
            mocks[name] = InstanceAddresses(addresses=value)
    return mocks


def address_from_string(address: str) -> int:
    """Convert a decimal or ``0x``-prefixed hexadecimal address to a felt.

    Raises:
        MockConfigError: If the string is not a valid number for its radix

    """
    digits, radix = address, 10
    if address.startswith("0x"):
        digits, radix = address[2:], 16

    if not _DIGITS[radix].fullmatch(digits):
        raise MockConfigError(
            f"Failed to parse address from string '{address}' with radix {radix}."
        )
    return to_felt(int(digits, radix))


def contract_name_from_info(info: ContractInfo) -> str | None:
    """Name of a contract, taken from the debug name of one of its entry points.

    The debug name of an entry point looks like
    ``package::ERC20::__external::transfer``; the contract name is the third
    segment from the end. Contracts with no named entry point are not mockable.
    """
    if info.constructor is not None:
        function = info.constructor
    else:
        function = next(
            iter([*info.externals.values(), *info.l1_handlers.values()]), None
        )

    if function is None or not function.debug_name:
        return None

    parts = function.debug_name.split("::")
    if len(parts) < 3:
        return None
    return parts[-3]


@dataclass(frozen=True, kw_only=True)
class MockAddressResolver:
    """Builds the simulated state of each test from mocked addresses."""

    contracts_info: Mapping[int, ContractInfo]
    mocked_addresses: Mapping[str, MockConfig] = field(default_factory=dict)
    show_mocks: bool = False

    def validate(self) -> None:
        """Check every global address once, before any test runs.

        Raises:
            MockConfigError: If a global address cannot be parsed

        """
        for mock in self.mocked_addresses.values():
            if isinstance(mock, SingletonAddress):
                address_from_string(mock.address)
            else:
                for address in mock.addresses.values():
                    address_from_string(address)

    def build_state(
        self,
        test_name: str,
        test_mocks: Mapping[str, MockConfig] | None = None,
    ) -> SimulatedState:
        """Build a fresh simulated state for one test.

        Args:
            test_name: Name of the test, for logging
            test_mocks: Mocks declared on the test; they take precedence over
                the global ones for this test only

        Returns:
            A new state owned by the caller

        Raises:
            MockConfigError: If an address cannot be parsed

        """
        merged = dict(self.mocked_addresses)
        if test_mocks:
            merged.update(test_mocks)

        state = SimulatedState()
        if not merged:
            return state

        level = logging.INFO if self.show_mocks else logging.DEBUG
        for class_hash, info in self.contracts_info.items():
            contract_name = contract_name_from_info(info)
            if contract_name is None or contract_name not in merged:
                continue

            mock = merged[contract_name]
            if isinstance(mock, SingletonAddress):
                log.log(
                    level,
                    "[%s] %s mocked at %s (class_hash: %#x)",
                    test_name,
                    contract_name,
                    mock.address,
                    class_hash,
                )
                state.set_contract_address(
                    address_from_string(mock.address), class_hash
                )
            else:
                for instance, address in mock.addresses.items():
                    log.log(
                        level,
                        "[%s] %s [%s] mocked at %s (class_hash: %#x)",
                        test_name,
                        contract_name,
                        instance,
                        address,
                        class_hash,
                    )
                    state.set_contract_address(address_from_string(address), class_hash)

        return state
