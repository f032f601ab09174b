from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from .addresses import normalize_address
from .config import NetworkConfig, Settings
from .document import GenesisDocument
from .errors import ConfigurationError
from .genesis import render
from .ledger import PrefundedAccount
from .units import parse_int


def read_json(path: str, field: str) -> Any:
    p = Path(path)
    if not p.is_file():
        raise ConfigurationError(field, f"missing file '{p}'")
    try:
        with p.open("r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(field, f"'{p}' is not valid JSON", str(e)) from None


def load_network_config(path: str, settings: Settings) -> NetworkConfig:
    return NetworkConfig.from_json(read_json(path, "config"), settings)


def load_template(path: str, settings: Settings) -> GenesisDocument:
    doc = GenesisDocument.from_json(read_json(path, "template"))
    for addr in settings.system_contracts:
        if addr not in doc.alloc:
            raise ConfigurationError("template.alloc", "system contract not declared", addr)
    return doc


def load_prefunded(path: str) -> Dict[str, PrefundedAccount]:
    """
    Supports:
    1) {"alloc": {"0xabc...": {"balance": "1000"}, ...}}
    2) {"0xabc...": {"balance": "1000"}, ...}
    Balances are base-10 or 0x hex strings in minimal units; "storage" is optional.
    """
    obj = read_json(path, "prefund")
    if isinstance(obj, dict) and isinstance(obj.get("alloc"), dict):
        obj = obj["alloc"]
    if not isinstance(obj, dict):
        raise ConfigurationError("prefund", "expected an address -> account object")

    out: Dict[str, PrefundedAccount] = {}
    for addr, rec in obj.items():
        field = f"prefund[{addr}]"
        key = normalize_address(addr, field)
        if not isinstance(rec, dict):
            raise ConfigurationError(field, "account must be a JSON object", rec)

        balance = rec.get("balance")
        storage = rec.get("storage") or {}
        if not isinstance(storage, dict):
            raise ConfigurationError(f"{field}.storage", "must be a JSON object")

        out[key] = PrefundedAccount(
            balance=None if balance is None else parse_int(balance, f"{field}.balance"),
            storage={str(k): str(v) for k, v in storage.items()},
        )
    return out


def write_genesis(doc: GenesisDocument, path: str) -> None:
    text = render(doc)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
