from derived_oracle.abi import load_aggregator_abi, load_wsteth_abi, with_uint256_getter


def function_names(abi: list[dict]) -> set[str]:
    return {entry["name"] for entry in abi if entry.get("type") == "function"}


def test_aggregator_abi_exposes_round_data():
    assert {
        "decimals",
        "description",
        "version",
        "getRoundData",
        "latestRoundData",
    } <= function_names(load_aggregator_abi())


def test_wsteth_abi_exposes_exchange_rates():
    assert {"decimals", "tokensPerStEth", "stEthPerToken"} <= function_names(
        load_wsteth_abi()
    )


def test_with_uint256_getter_adds_missing_view():
    abi = with_uint256_getter(load_wsteth_abi(), "getExchangeRate")

    (getter,) = [e for e in abi if e.get("name") == "getExchangeRate"]
    assert getter["inputs"] == []
    assert getter["outputs"][0]["type"] == "uint256"
    assert getter["stateMutability"] == "view"


def test_with_uint256_getter_keeps_known_functions():
    abi = load_wsteth_abi()

    assert with_uint256_getter(abi, "tokensPerStEth") is abi
