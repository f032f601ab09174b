from __future__ import annotations

from decimal import Decimal

import pytest

from quorum_genesis.addresses import normalize_address, normalize_addresses
from quorum_genesis.config import NetworkConfig, Settings
from quorum_genesis.errors import AddressFormatError, ConfigurationError
from quorum_genesis.units import parse_int, to_tokens, to_units

A = "0x" + "aa" * 20
B = "0x" + "bb" * 20
C = "0x" + "cc" * 20


def test_addresses_are_case_insensitive_and_prefix_optional() -> None:
    assert normalize_address("0x" + "AA" * 20, "x") == A
    assert normalize_address("aa" * 20, "x") == A
    assert normalize_addresses([A, "AA" * 20, B], "x") == (A, B)


@pytest.mark.parametrize("bad", ["0x1234", "0x" + "zz" * 20, 42, None, ""])
def test_malformed_addresses_rejected(bad) -> None:
    with pytest.raises(AddressFormatError):
        normalize_address(bad, "makers[0]")


def test_units_are_exact() -> None:
    assert to_units("1.5", 18, "x") == 15 * 10**17
    assert to_units(150_000_000, 18, "x") == 150_000_000 * 10**18
    assert to_tokens(15 * 10**17, 18) == Decimal("1.5")
    assert parse_int("0x10", "x") == 16
    assert parse_int("42", "x") == 42


@pytest.mark.parametrize("bad", [1.5, "0.001", "abc", "-1", True, "1e999999"])
def test_units_reject_inexact_amounts(bad) -> None:
    with pytest.raises(ConfigurationError):
        to_units(bad, 2, "amount")


def test_zero_makers_rejected() -> None:
    with pytest.raises(ConfigurationError) as e:
        NetworkConfig.from_json({"makers": [], "chainID": 1}, Settings())
    assert e.value.field == "makers"


def test_missing_chain_id_rejected_when_required() -> None:
    with pytest.raises(ConfigurationError) as e:
        NetworkConfig.from_json({"makers": [A]}, Settings())
    assert e.value.field == "chainID"

    cfg = NetworkConfig.from_json({"makers": [A]}, Settings(require_chain_id=False))
    assert cfg.chain_id is None


def test_config_defaults_and_dedup() -> None:
    cfg = NetworkConfig.from_json(
        {"makers": [A, A.upper().replace("0X", "0x")], "chainID": "10", "gasLimit": "0x47b760"},
        Settings(),
    )
    assert cfg.makers == (A,)
    assert cfg.voters == ()
    assert cfg.funded_observers == ()
    assert cfg.chain_id == 10
    assert cfg.gas_limit == 4_700_000


def test_threshold_rules() -> None:
    settings = Settings(threshold_voting=True)
    cfg = NetworkConfig.from_json(
        {"makers": [C], "voters": [A, B], "threshold": 2, "chainID": 1}, settings
    )
    assert cfg.threshold == 2

    with pytest.raises(ConfigurationError):
        NetworkConfig.from_json({"makers": [C], "voters": [A, B], "threshold": 3, "chainID": 1}, settings)
    with pytest.raises(ConfigurationError):
        NetworkConfig.from_json({"makers": [C], "voters": [A], "chainID": 1}, settings)
    with pytest.raises(ConfigurationError):
        NetworkConfig.from_json({"makers": [C], "voters": [A], "threshold": 1, "chainID": 1}, Settings())


def test_settings_from_mapping() -> None:
    s = Settings.from_mapping(
        {
            "total_supply": "1000",
            "token_decimals": 2,
            "remainder_policy": "EVEN",
            "threshold_voting": "yes",
            "escrows": [{"name": "team", "amount": "1.5", "members": [A, B]}],
        }
    )
    assert s.supply_units == 100_000
    assert s.remainder_policy == "even"
    assert s.threshold_voting is True
    assert s.escrow_groups[0].amount == 150
    assert s.escrow_groups[0].members == (A, B)


@pytest.mark.parametrize(
    "raw",
    [
        {"bogus": 1},
        {"remainder_policy": "spread"},
        {"voting_contract": "0x" + "00" * 19 + "2a"},
        {"escrows": [{"name": "team", "amount": 1, "members": []}]},
        {"escrows": [{"name": "team", "amount": "0.001", "members": [A]}], "token_decimals": 2},
    ],
)
def test_settings_rejects_bad_profiles(raw) -> None:
    with pytest.raises(ConfigurationError):
        Settings.from_mapping(raw)


def test_settings_from_env(monkeypatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    profile = tmp_path / "profile.json"
    profile.write_text('{"total_supply": 500, "token_decimals": 0}', encoding="utf-8")
    monkeypatch.setenv("GENESIS_PROFILE", str(profile))
    monkeypatch.setenv("GENESIS_TOTAL_SUPPLY", "600")

    s = Settings.from_env()
    assert s.total_supply == 600
    assert s.token_decimals == 0


def test_out_of_range_escrow_amount_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError) as e:
        Settings.from_mapping({"escrows": [{"name": "team", "amount": "1e999999", "members": [A]}]})
    assert e.value.field == "escrows[0].amount"
    assert e.value.reason == "out of range"
