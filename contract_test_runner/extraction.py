"""Extraction of test configuration from function attributes."""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from contract_test_runner.errors import AttributeUsageError
from contract_test_runner.felt import short_string_to_felt, to_felt
from contract_test_runner.models.attribute import (
    AttributeDescriptor,
    AttributeValue,
    IntLiteral,
    ShortStringLiteral,
    TupleLiteral,
)
from contract_test_runner.models.config import (
    AnyPanic,
    ExactPanic,
    ExpectPanics,
    ExpectSuccess,
    InstanceAddresses,
    MockConfig,
    SingletonAddress,
    TestConfig,
    TestExpectation,
)

log = logging.getLogger(__name__)

TEST_ATTR = "test"
IGNORE_ATTR = "ignore"
AVAILABLE_GAS_ATTR = "available_gas"
SHOULD_PANIC_ATTR = "should_panic"
MOCK_ADDRESSES_ATTR = "mock_addresses"

TEST_ONLY_ATTRS = (IGNORE_ATTR, AVAILABLE_GAS_ATTR, SHOULD_PANIC_ATTR)

NOT_ON_TEST_MESSAGE = "Attribute should only appear on tests."
NO_ARGUMENTS_MESSAGE = "Attribute should not have arguments."
SINGLE_VALUE_MESSAGE = "Attribute should have a single value argument."
EXPECTED_PANIC_MESSAGE = (
    "Expected panic must be of the form `expected: <tuple of felt252s>`."
)


@dataclass(frozen=True, kw_only=True)
class Diagnostic:
    """Problem found on one attribute of a function."""

    attribute: str
    message: str

    def __str__(self) -> str:
        return f"#[{self.attribute}]: {self.message}"


def try_extract_test_config(
    attributes: Sequence[AttributeDescriptor],
) -> TestConfig | None:
    """Extract the configuration of a test from the attributes of a function.

    Args:
        attributes: Every attribute attached to the function, in source order

    Returns:
        The test configuration, or None if the function is not a test

    Raises:
        AttributeUsageError: If attributes are set illegally. All diagnostics
            of the function are reported at once, along with the partial
            configuration inferred from the rest.

    """
    test_attr = _find(attributes, TEST_ATTR)
    ignore_attr = _find(attributes, IGNORE_ATTR)
    available_gas_attr = _find(attributes, AVAILABLE_GAS_ATTR)
    should_panic_attr = _find(attributes, SHOULD_PANIC_ATTR)

    diagnostics: list[Diagnostic] = []

    if test_attr is None:
        diagnostics.extend(
            Diagnostic(attribute=attr.name, message=NOT_ON_TEST_MESSAGE)
            for attr in (ignore_attr, available_gas_attr, should_panic_attr)
            if attr is not None
        )
    elif test_attr.args:
        diagnostics.append(Diagnostic(attribute=TEST_ATTR, message=NO_ARGUMENTS_MESSAGE))

    ignored = ignore_attr is not None
    if ignore_attr is not None and ignore_attr.args:
        diagnostics.append(
            Diagnostic(attribute=IGNORE_ATTR, message=NO_ARGUMENTS_MESSAGE)
        )

    available_gas: int | None = None
    if available_gas_attr is not None:
        available_gas = _extract_available_gas(available_gas_attr)
        if available_gas is None:
            diagnostics.append(
                Diagnostic(attribute=AVAILABLE_GAS_ATTR, message=SINGLE_VALUE_MESSAGE)
            )

    expectation: TestExpectation = ExpectSuccess()
    if should_panic_attr is not None:
        expectation = ExpectPanics(panic=AnyPanic())
        if should_panic_attr.args:
            if (values := _extract_panic_values(should_panic_attr)) is not None:
                expectation = ExpectPanics(panic=ExactPanic(values=values))
            else:
                diagnostics.append(
                    Diagnostic(
                        attribute=SHOULD_PANIC_ATTR, message=EXPECTED_PANIC_MESSAGE
                    )
                )

    mocks = extract_mock_addresses(
        [attr for attr in attributes if attr.name == MOCK_ADDRESSES_ATTR]
    )

    config = TestConfig(
        available_gas=available_gas,
        expectation=expectation,
        ignored=ignored,
        mocks=mocks,
    )

    if diagnostics:
        raise AttributeUsageError(
            diagnostics, partial=config if test_attr is not None else None
        )

    return config if test_attr is not None else None


def _find(
    attributes: Sequence[AttributeDescriptor], name: str
) -> AttributeDescriptor | None:
    return next((attr for attr in attributes if attr.name == name), None)


def _extract_available_gas(attr: AttributeDescriptor) -> int | None:
    """Gas budget from ``#[available_gas(N)]``, or None if malformed."""
    if len(attr.args) != 1:
        return None
    [arg] = attr.args
    if arg.name is not None or not isinstance(arg.value, IntLiteral):
        return None
    if arg.value.value < 0:
        return None
    return arg.value.value


def _extract_panic_values(attr: AttributeDescriptor) -> tuple[int, ...] | None:
    """Felts from ``#[should_panic(expected: (...))]``, or None if malformed."""
    if len(attr.args) != 1:
        return None
    [arg] = attr.args
    if arg.name != "expected" or not isinstance(arg.value, TupleLiteral):
        return None

    values: list[int] = []
    for element in arg.value.elements:
        if (felt := _literal_to_felt(element)) is None:
            return None
        values.append(felt)
    return tuple(values)


def _literal_to_felt(value: AttributeValue) -> int | None:
    if isinstance(value, IntLiteral):
        return to_felt(value.value)
    if isinstance(value, ShortStringLiteral):
        return short_string_to_felt(value.text)
    return None


def extract_mock_addresses(
    attributes: Sequence[AttributeDescriptor],
) -> Mapping[str, MockConfig]:
    """Collect mocked addresses from ``#[mock_addresses(...)]`` attributes.

    Each named argument maps a contract name to an address literal, or to a
    tuple of an address and an instance tag:

        #[mock_addresses(Oracle: 0x1234, ERC20: (0x1, 'ETH'), ERC20: (0x2, 'USDC'))]

    Tagged declarations of one contract accumulate into a single
    ``InstanceAddresses``. Arguments without an address are skipped.
    """
    singletons: dict[str, SingletonAddress] = {}
    instances: dict[str, dict[str, str]] = {}
    order: dict[str, None] = {}

    for attr in attributes:
        for arg in attr.args:
            if arg.name is None:
                log.warning("Ignoring unnamed argument in #[%s]", attr.name)
                continue

            address, instance = _extract_mock_target(arg.value)
            if address is None:
                log.warning("No address found for contract %s, skipping", arg.name)
                continue

            order[arg.name] = None
            if instance is None:
                singletons[arg.name] = SingletonAddress(address=address)
                instances.pop(arg.name, None)
            else:
                singletons.pop(arg.name, None)
                instances.setdefault(arg.name, {})[instance] = address

    mocks: dict[str, MockConfig] = {}
    for name in order:
        if name in singletons:
            mocks[name] = singletons[name]
        else:
            mocks[name] = InstanceAddresses(addresses=instances[name])
    return mocks


def _extract_mock_target(value: AttributeValue) -> tuple[str | None, str | None]:
    """Split a mock argument value into (address, instance tag)."""
    if isinstance(value, IntLiteral):
        return _address_literal(value), None
    if not isinstance(value, TupleLiteral):
        return None, None

    address: str | None = None
    instance: str | None = None
    for element in value.elements:
        if isinstance(element, IntLiteral):
            address = _address_literal(element)
        elif isinstance(element, ShortStringLiteral):
            instance = element.text
    return address, instance


def _address_literal(literal: IntLiteral) -> str | None:
    """Address text of an integer literal; negative values are not addresses."""
    if literal.value < 0:
        return None
    return str(literal.value)
