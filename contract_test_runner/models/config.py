"""Models for the configuration of a single test."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field


@dataclass(frozen=True, kw_only=True)
class AnyPanic:
    """Accept any panic payload."""


@dataclass(frozen=True, kw_only=True)
class ExactPanic:
    """Accept only a panic with exactly these field elements."""

    values: Sequence[int]


type PanicExpectation = AnyPanic | ExactPanic


@dataclass(frozen=True, kw_only=True)
class ExpectSuccess:
    """Running the test should not panic."""


@dataclass(frozen=True, kw_only=True)
class ExpectPanics:
    """Running the test should panic."""

    panic: PanicExpectation = field(default_factory=AnyPanic)


type TestExpectation = ExpectSuccess | ExpectPanics


@dataclass(frozen=True, kw_only=True)
class SingletonAddress:
    """Contract deployed once, e.g. ``"Contract1": "0x1"``."""

    address: str


@dataclass(frozen=True, kw_only=True)
class InstanceAddresses:
    """Contract deployed several times, addresses keyed by instance tag.

    Example: ``"ERC20": {"Starkgate": "0x1234", "MyERC20": "0x98"}``.
    """

    addresses: Mapping[str, str]


type MockConfig = SingletonAddress | InstanceAddresses


@dataclass(frozen=True, kw_only=True)
class TestConfig:
    """Configuration for running a single test."""

    __test__ = False

    available_gas: int | None = None
    expectation: TestExpectation = field(default_factory=ExpectSuccess)
    ignored: bool = False
    mocks: Mapping[str, MockConfig] = field(default_factory=dict)
