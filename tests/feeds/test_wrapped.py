import pytest

from derived_oracle.errors import ConfigurationError, InvalidMagnitudeError
from derived_oracle.feeds.base import BasePriceFeed, PriceObservation
from derived_oracle.feeds.simple import SimplePriceFeed
from derived_oracle.feeds.wrapped import WrappedTokenPriceFeed
from derived_oracle.rates import StaticRateSource
from derived_oracle.units import truncating_div

UNDERLYING_PRICE = 2000 * 10**18
RATE = 11 * 10**17  # 1.1


class CountingFeed(SimplePriceFeed):
    """SimplePriceFeed that records how often its decimals are read."""

    def __init__(self, *args, **kwargs):
        self.decimals_reads = 0
        super().__init__(*args, **kwargs)

    @property
    def decimals(self) -> int:
        self.decimals_reads += 1
        return self._decimals


class CountingRateSource(StaticRateSource):
    def __init__(self, *args, **kwargs):
        self.decimals_reads = 0
        self.rate_reads = 0
        super().__init__(*args, **kwargs)

    @property
    def decimals(self) -> int:
        self.decimals_reads += 1
        return self._decimals

    def exchange_rate(self) -> int:
        self.rate_reads += 1
        return self.rate


class FailingRateSource(StaticRateSource):
    def exchange_rate(self) -> int:
        raise RuntimeError("execution reverted")


@pytest.fixture
def reference():
    return SimplePriceFeed(UNDERLYING_PRICE, 18, timestamp=1_700_000_000)


@pytest.fixture
def token():
    return StaticRateSource(RATE, 18)


def test_latest_round_data_at_full_precision(reference, token):
    feed = WrappedTokenPriceFeed(reference, token, 18)

    _, answer, _, _, _ = feed.latest_round_data()

    assert answer == 1818181818181818181818


def test_latest_round_data_scaled_down_to_8_decimals(reference, token):
    feed = WrappedTokenPriceFeed(reference, token, 8)

    observation = feed.latest_round_data()

    assert observation.answer == 1818181818181818181818 // 10**10
    assert observation.answer == 181818181818


def test_output_decimals_above_reference_raise(reference, token):
    with pytest.raises(ConfigurationError, match="exceed reference feed decimals"):
        WrappedTokenPriceFeed(reference, token, 19)


def test_negative_output_decimals_raise(reference, token):
    with pytest.raises(ConfigurationError):
        WrappedTokenPriceFeed(reference, token, -1)


def test_exchange_rate_above_int256_max_raises(reference):
    feed = WrappedTokenPriceFeed(reference, StaticRateSource(2**255, 18), 18)

    with pytest.raises(InvalidMagnitudeError):
        feed.latest_round_data()


def test_exchange_rate_at_int256_max_is_accepted(reference):
    feed = WrappedTokenPriceFeed(reference, StaticRateSource(2**255 - 1, 18), 18)

    assert feed.latest_round_data().answer == 0


def test_round_fields_are_passed_through(reference, token):
    feed = WrappedTokenPriceFeed(reference, token, 8)

    derived = feed.latest_round_data()
    original = reference.latest_round_data()

    assert derived.round_id == original.round_id
    assert derived.started_at == original.started_at == 1_700_000_000
    assert derived.updated_at == original.updated_at
    assert derived.answered_in_round == original.answered_in_round


def test_get_round_data_uses_requested_round(reference, token):
    reference.set_price(3000 * 10**18, timestamp=1_700_000_600)
    feed = WrappedTokenPriceFeed(reference, token, 18)

    first = feed.get_round_data(1)
    second = feed.get_round_data(2)

    assert first.round_id == 1
    assert first.updated_at == 1_700_000_000
    assert first.answer == 1818181818181818181818
    assert second.round_id == 2
    assert second.updated_at == 1_700_000_600
    assert second.answer == 3000 * 10**36 // RATE


def test_historical_round_uses_current_exchange_rate(reference, token):
    feed = WrappedTokenPriceFeed(reference, token, 18)
    before = feed.get_round_data(1)

    token.rate = 12 * 10**17

    after = feed.get_round_data(1)
    assert after.updated_at == before.updated_at
    assert after.answer == UNDERLYING_PRICE * 10**18 // (12 * 10**17)
    assert after.answer != before.answer


def test_negative_underlying_price_truncates_toward_zero(token):
    reference = SimplePriceFeed(-UNDERLYING_PRICE, 18)

    assert WrappedTokenPriceFeed(reference, token, 18).latest_round_data().answer == (
        -1818181818181818181818
    )
    assert WrappedTokenPriceFeed(reference, token, 8).latest_round_data().answer == (
        -181818181818
    )


@pytest.mark.parametrize(
    "underlying_price, rate, token_decimals, reference_decimals, output_decimals",
    [
        (2000 * 10**8, 11 * 10**17, 18, 8, 8),
        (2000 * 10**8, 11 * 10**17, 18, 8, 0),
        (123_456_789, 999_999_999_999_999_999, 18, 8, 6),
        (1, 3, 6, 18, 17),
        (-7, 2, 0, 2, 1),
        (10**30, 10**18 + 1, 18, 18, 2),
    ],
)
def test_derived_price_matches_truncating_formula(
    underlying_price, rate, token_decimals, reference_decimals, output_decimals
):
    reference = SimplePriceFeed(underlying_price, reference_decimals)
    token = StaticRateSource(rate, token_decimals)
    feed = WrappedTokenPriceFeed(reference, token, output_decimals)

    expected = truncating_div(underlying_price * 10**token_decimals, rate)
    expected = truncating_div(expected, 10 ** (reference_decimals - output_decimals))

    assert feed.latest_round_data().answer == expected


def test_configuration_is_read_once():
    reference = CountingFeed(UNDERLYING_PRICE, 18)
    token = CountingRateSource(RATE, 18)
    feed = WrappedTokenPriceFeed(reference, token, 8)

    for _ in range(3):
        feed.latest_round_data()
        feed.get_round_data(1)

    assert reference.decimals_reads == 1
    assert token.decimals_reads == 1
    assert token.rate_reads == 6
    assert feed.config.reference_decimals == 18
    assert feed.config.wrapped_token_scale == 10**18


def test_metadata_is_stable(reference, token):
    feed = WrappedTokenPriceFeed(reference, token, 8, description="wstETH / ETH")

    assert [feed.decimals, feed.description, feed.version] == [8, "wstETH / ETH", 1]
    assert [feed.decimals, feed.description, feed.version] == [8, "wstETH / ETH", 1]


def test_config_cannot_be_mutated(reference, token):
    feed = WrappedTokenPriceFeed(reference, token, 8)

    with pytest.raises(AttributeError):
        feed.config.decimals = 18  # type: ignore[misc]


def test_upstream_errors_propagate_unchanged(reference):
    feed = WrappedTokenPriceFeed(reference, FailingRateSource(RATE, 18), 18)

    with pytest.raises(RuntimeError, match="execution reverted"):
        feed.latest_round_data()


def test_unknown_round_propagates(reference, token):
    feed = WrappedTokenPriceFeed(reference, token, 18)

    with pytest.raises(LookupError):
        feed.get_round_data(99)


def test_zero_exchange_rate_is_not_masked(reference):
    feed = WrappedTokenPriceFeed(reference, StaticRateSource(0, 18), 18)

    with pytest.raises(ZeroDivisionError):
        feed.latest_round_data()


def test_derived_feed_is_interchangeable_with_primary(reference, token):
    def describe(feed: BasePriceFeed) -> tuple[int, PriceObservation]:
        return feed.decimals, feed.latest_round_data()

    derived = WrappedTokenPriceFeed(reference, token, 18)

    assert isinstance(derived, BasePriceFeed)
    assert describe(reference)[1].answer == UNDERLYING_PRICE
    assert describe(derived)[1].answer == 1818181818181818181818


def test_from_addresses_builds_web3_collaborators(monkeypatch, reference, token):
    captured = {}

    class FakeChainlink:
        @staticmethod
        def from_address(w3, address, block_identifier):
            captured["feed"] = (w3, address, block_identifier)
            return reference

    class FakeContractRateSource:
        @staticmethod
        def from_address(w3, address, rate_method, block_identifier):
            captured["token"] = (w3, address, rate_method, block_identifier)
            return token

    monkeypatch.setattr(
        "derived_oracle.feeds.wrapped.ChainlinkPriceFeed", FakeChainlink
    )
    monkeypatch.setattr(
        "derived_oracle.feeds.wrapped.ContractRateSource", FakeContractRateSource
    )

    w3 = object()
    feed = WrappedTokenPriceFeed.from_addresses(
        w3, "0xfeed", "0xtoken", 8, rate_method="stEthPerToken", block_identifier=123
    )

    assert captured["feed"] == (w3, "0xfeed", 123)
    assert captured["token"] == (w3, "0xtoken", "stEthPerToken", 123)
    assert feed.latest_round_data().answer == 181818181818
