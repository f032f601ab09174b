from __future__ import annotations

import json
from pathlib import Path

import pytest

from quorum_genesis.config import Settings
from quorum_genesis.errors import ConfigurationError, VerificationError
from quorum_genesis.genesis import build
from quorum_genesis.loaders import (
    load_network_config,
    load_prefunded,
    load_template,
    write_genesis,
)
from quorum_genesis.verify import verify_genesis

A = "0x" + "aa" * 20
B = "0x" + "bb" * 20
C = "0x" + "cc" * 20


def _write(path: Path, obj) -> str:
    path.write_text(json.dumps(obj), encoding="utf-8")
    return str(path)


def _template(settings: Settings) -> dict:
    return {
        "config": {"homesteadBlock": 0, "isQuorum": True},
        "nonce": "0x0",
        "alloc": {
            settings.voting_contract.upper().replace("0X", "0x"): {
                "code": "0x6060",
                "storage": {},
                "balance": "0",
            },
            settings.governance_contract: {"code": "0x6061", "storage": {}, "balance": "0x0"},
        },
    }


def test_load_template_normalizes_and_passes_through(tmp_path) -> None:
    settings = Settings()
    doc = load_template(_write(tmp_path / "t.json", _template(settings)), settings)

    assert doc.alloc[settings.voting_contract].extra == {"code": "0x6060"}
    assert doc.chain_config == {"homesteadBlock": 0, "isQuorum": True}
    assert doc.extra == {"nonce": "0x0"}


def test_load_template_requires_system_contracts(tmp_path) -> None:
    settings = Settings()
    with pytest.raises(ConfigurationError):
        load_template(_write(tmp_path / "t.json", {"alloc": {}}), settings)


def test_missing_config_file_is_reported(tmp_path) -> None:
    with pytest.raises(ConfigurationError) as e:
        load_network_config(str(tmp_path / "nope.json"), Settings())
    assert e.value.field == "config"


def test_load_prefunded_shapes(tmp_path) -> None:
    wrapped = load_prefunded(_write(tmp_path / "a.json", {"alloc": {A: {"balance": "100"}}}))
    bare = load_prefunded(_write(tmp_path / "b.json", {A.upper().replace("0X", "0x"): {"balance": "0x64"}}))

    assert wrapped[A].balance == 100
    assert bare[A].balance == 100


def test_round_trip_build_then_verify(tmp_path) -> None:
    settings = Settings()
    cfg_path = _write(tmp_path / "cfg.json", {"makers": [C], "voters": [A, B], "chainID": 99})
    config = load_network_config(cfg_path, settings)
    template = load_template(_write(tmp_path / "t.json", _template(settings)), settings)
    prefunded = load_prefunded(_write(tmp_path / "sale.json", {"alloc": {A: {"balance": "123"}}}))

    out = tmp_path / "genesis.json"
    write_genesis(build(config, settings, template=template, prefunded=prefunded), str(out))

    written = json.loads(out.read_text(encoding="utf-8"))
    assert written["config"] == {"homesteadBlock": 0, "isQuorum": True, "chainID": 99}
    assert written["alloc"][settings.voting_contract]["code"] == "0x6060"
    assert written["alloc"][A] == {"balance": "123"}

    result = verify_genesis(str(out), config, settings)
    assert result["ok"] is True
    assert result["total_supply"] == settings.supply_units
    assert result["owners"] == 3


def test_verify_rejects_tampered_genesis(tmp_path) -> None:
    settings = Settings()
    config = load_network_config(
        _write(tmp_path / "cfg.json", {"makers": [C], "voters": [A], "chainID": 1}), settings
    )
    out = tmp_path / "genesis.json"
    write_genesis(build(config, settings), str(out))

    genesis = json.loads(out.read_text(encoding="utf-8"))
    genesis["alloc"][settings.remainder_address]["balance"] = "1"
    _write(out, genesis)
    with pytest.raises(VerificationError):
        verify_genesis(str(out), config, settings)

    write_genesis(build(config, settings), str(out))
    genesis = json.loads(out.read_text(encoding="utf-8"))
    genesis["alloc"][settings.voting_contract]["storage"].clear()
    _write(out, genesis)
    with pytest.raises(VerificationError):
        verify_genesis(str(out), config, settings)


def test_prefunded_system_contract_storage_still_verifies(tmp_path) -> None:
    settings = Settings()
    config = load_network_config(
        _write(tmp_path / "cfg.json", {"makers": [C], "voters": [A], "chainID": 1}), settings
    )
    prefunded = load_prefunded(
        _write(tmp_path / "sale.json", {settings.voting_contract: {"storage": {"0x09": "0x01"}}})
    )
    out = tmp_path / "genesis.json"
    write_genesis(build(config, settings, prefunded=prefunded), str(out))

    assert verify_genesis(str(out), config, settings)["ok"] is True


def test_prefunded_system_contract_balance_is_rejected(tmp_path) -> None:
    settings = Settings()
    config = load_network_config(
        _write(tmp_path / "cfg.json", {"makers": [C], "voters": [A], "chainID": 1}), settings
    )
    prefunded = load_prefunded(
        _write(tmp_path / "sale.json", {settings.voting_contract: {"balance": "5"}})
    )
    with pytest.raises(ConfigurationError):
        build(config, settings, prefunded=prefunded)


def test_write_genesis_leaves_existing_file_when_rendering_fails(tmp_path) -> None:
    settings = Settings()
    config = load_network_config(
        _write(tmp_path / "cfg.json", {"makers": [C], "voters": [A], "chainID": 1}), settings
    )
    doc = build(config, settings)
    doc.extra["unserializable"] = object()
    out = tmp_path / "genesis.json"
    out.write_text("previous", encoding="utf-8")

    with pytest.raises(TypeError):
        write_genesis(doc, str(out))
    assert out.read_text(encoding="utf-8") == "previous"
