from __future__ import annotations

from typing import Any, Dict

from .config import NetworkConfig, Settings
from .contracts import governance_contract_storage, voting_contract_storage
from .document import GenesisDocument
from .errors import VerificationError
from .genesis import initial_difficulty
from .ledger import total_allocated
from .loaders import read_json


def verify_genesis(genesis_path: str, config: NetworkConfig, settings: Settings) -> Dict[str, Any]:
    doc = GenesisDocument.from_json(read_json(genesis_path, "genesis"))

    # Recreate the contract storage from the config and compare slot by slot
    expected = {
        settings.voting_contract: voting_contract_storage(config, settings),
        settings.governance_contract: governance_contract_storage(config, settings),
    }
    for contract, slots in expected.items():
        acct = doc.alloc.get(contract)
        if acct is None:
            raise VerificationError("alloc", "system contract missing", contract)
        actual = {k.lower(): v.lower() for k, v in (acct.storage or {}).items()}
        for key, value in slots.items():
            if actual.get(key) != value:
                raise VerificationError(
                    f"alloc[{contract}].storage[{key}]",
                    f"expected {value}, found {actual.get(key)}",
                )
        if acct.balance != settings.system_contract_balance:
            raise VerificationError(
                f"alloc[{contract}].balance",
                f"expected {settings.system_contract_balance}, found {acct.balance}",
            )

    total = total_allocated(doc)
    if total != settings.supply_units:
        raise VerificationError(
            "alloc",
            f"total supply mismatch: genesis={total} expected={settings.supply_units}",
        )

    if config.chain_id is not None and doc.chain_config.get("chainID") != config.chain_id:
        raise VerificationError(
            "config.chainID",
            f"expected {config.chain_id}, found {doc.chain_config.get('chainID')}",
        )

    if settings.dynamic_difficulty:
        want = initial_difficulty(config, settings)
        found = doc.difficulty
        try:
            matches = isinstance(found, str) and int(found, 16) == want
        except ValueError:
            matches = False
        if not matches:
            raise VerificationError("difficulty", f"expected {hex(want)}, found {found}")

    return {
        "ok": True,
        "accounts": len(doc.alloc),
        "total_supply": total,
        "voters": len(config.voters),
        "makers": len(config.makers),
        "owners": len(config.governance_owners(settings)),
    }
