from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

from .addresses import normalize_address
from .errors import ConfigurationError
from .units import parse_int

Json = Dict[str, Any]


@dataclass
class AccountState:
    balance: int = 0
    # Only system contracts carry storage: 32-byte hex key -> hex value
    storage: Optional[Dict[str, str]] = None
    # Anything else the template declares (code, nonce, ...), passed through untouched
    extra: Json = field(default_factory=dict)

    def to_json(self) -> Json:
        out: Json = dict(self.extra)
        out["balance"] = str(self.balance)
        if self.storage is not None:
            out["storage"] = dict(self.storage)
        return out

    @staticmethod
    def from_json(obj: Any, field_name: str) -> "AccountState":
        if not isinstance(obj, dict):
            raise ConfigurationError(field_name, "account must be a JSON object", obj)
        extra = {k: copy.deepcopy(v) for k, v in obj.items() if k not in ("balance", "storage")}
        storage = obj.get("storage")
        if storage is not None:
            if not isinstance(storage, dict):
                raise ConfigurationError(f"{field_name}.storage", "must be a JSON object")
            storage = {str(k): str(v) for k, v in storage.items()}
        balance = obj.get("balance")
        return AccountState(
            balance=0 if balance is None else parse_int(balance, f"{field_name}.balance"),
            storage=storage,
            extra=extra,
        )


@dataclass
class GenesisDocument:
    """Genesis state under construction.

    Owned by a single build; each stage mutates it in place and it is rendered
    once at the end.
    """

    alloc: Dict[str, AccountState] = field(default_factory=dict)
    gas_limit: Any = None
    difficulty: Any = None
    chain_config: Json = field(default_factory=dict)
    # Top-level template fields we don't compute (nonce, timestamp, extraData, ...)
    extra: Json = field(default_factory=dict)

    def account(self, address: str) -> AccountState:
        acct = self.alloc.get(address)
        if acct is None:
            acct = AccountState()
            self.alloc[address] = acct
        return acct

    def storage_of(self, contract: str) -> Dict[str, str]:
        acct = self.account(contract)
        if acct.storage is None:
            acct.storage = {}
        return acct.storage

    def to_json(self) -> Json:
        out: Json = dict(self.extra)
        out["config"] = dict(self.chain_config)
        if self.gas_limit is not None:
            out["gasLimit"] = self.gas_limit
        if self.difficulty is not None:
            out["difficulty"] = self.difficulty
        out["alloc"] = {addr: acct.to_json() for addr, acct in self.alloc.items()}
        return out

    @staticmethod
    def from_json(obj: Any) -> "GenesisDocument":
        if not isinstance(obj, dict):
            raise ConfigurationError("template", "must be a JSON object")

        alloc_raw = obj.get("alloc") or {}
        if not isinstance(alloc_raw, dict):
            raise ConfigurationError("template.alloc", "must be a JSON object")
        alloc: Dict[str, AccountState] = {}
        for addr, acct in alloc_raw.items():
            key = normalize_address(addr, f"template.alloc[{addr}]")
            alloc[key] = AccountState.from_json(acct, f"template.alloc[{addr}]")

        chain_config = obj.get("config") or {}
        if not isinstance(chain_config, dict):
            raise ConfigurationError("template.config", "must be a JSON object")

        return GenesisDocument(
            alloc=alloc,
            gas_limit=obj.get("gasLimit"),
            difficulty=obj.get("difficulty"),
            chain_config=copy.deepcopy(chain_config),
            extra={
                k: copy.deepcopy(v)
                for k, v in obj.items()
                if k not in ("alloc", "config", "gasLimit", "difficulty")
            },
        )


def skeleton(system_contracts: Iterable[str]) -> GenesisDocument:
    """Bare template: the system contracts with empty storage and nothing else."""
    return GenesisDocument(
        alloc={addr: AccountState(balance=0, storage={}) for addr in system_contracts}
    )
