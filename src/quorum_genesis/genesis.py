from __future__ import annotations

import copy
import json
import logging
from typing import Mapping, Optional

from .config import NetworkConfig, Settings
from .contracts import write_governance_contract_storage, write_voting_contract_storage
from .document import GenesisDocument, skeleton
from .errors import ConfigurationError
from .ledger import (
    PrefundedAccount,
    fund_fixed_addresses,
    fund_weighted_escrows,
    merge_prefunded,
    reconcile_remainder,
    zero_system_contracts,
)


def set_gas_limit(doc: GenesisDocument, config: NetworkConfig) -> None:
    if config.gas_limit is not None:
        doc.gas_limit = hex(config.gas_limit)


def initial_difficulty(config: NetworkConfig, settings: Settings) -> int:
    """Difficulty for `seconds_per_block` given every maker hashes at the expected rate."""
    return settings.expected_maker_hashrate * settings.seconds_per_block * len(config.makers)


def set_difficulty(doc: GenesisDocument, config: NetworkConfig, settings: Settings) -> None:
    if settings.dynamic_difficulty:
        doc.difficulty = hex(initial_difficulty(config, settings))


def set_chain_id(doc: GenesisDocument, config: NetworkConfig) -> None:
    if config.chain_id is not None:
        doc.chain_config["chainID"] = config.chain_id


def build(
    config: NetworkConfig,
    settings: Settings,
    template: Optional[GenesisDocument] = None,
    prefunded: Optional[Mapping[str, PrefundedAccount]] = None,
) -> GenesisDocument:
    """Build the genesis state for `config`.

    Stages run in a fixed order and later stages may overwrite earlier ones:
    contract storage, chain parameters, participant and escrow funding,
    external pre-funding (which wins over anything computed here), the
    system-contract balance override and finally remainder reconciliation.
    Pre-funding a balance onto a system contract is a ConfigurationError.

    `template` is copied, never mutated. Raises SupplyOverflowError before
    returning anything when explicit allocations exceed the total supply.
    """
    log = logging.getLogger("genesis")

    doc = copy.deepcopy(template) if template is not None else skeleton(settings.system_contracts)
    for addr in settings.system_contracts:
        if addr not in doc.alloc:
            raise ConfigurationError("template.alloc", "system contract not declared", addr)

    system = set(settings.system_contracts)
    clashes = [a for a in config.participants if a in system]
    for group in settings.escrow_groups:
        clashes.extend(a for a in group.members if a in system)
    if clashes:
        raise ConfigurationError(
            "config", "system contracts cannot be funded participants", clashes[0]
        )

    prefunded = prefunded or {}
    funded_contracts = [
        a for a in settings.system_contracts if a in prefunded and prefunded[a].balance is not None
    ]
    if funded_contracts:
        raise ConfigurationError(
            "prefund", "system contracts cannot be pre-funded", funded_contracts[0]
        )

    write_voting_contract_storage(doc, config, settings)
    write_governance_contract_storage(doc, config, settings)
    log.info(
        "Voting contract: %d voters, %d makers; governance: %d owners",
        len(config.voters),
        len(config.makers),
        len(config.governance_owners(settings)),
    )

    set_gas_limit(doc, config)
    set_difficulty(doc, config, settings)
    set_chain_id(doc, config)

    if settings.participant_balance is not None:
        fund_fixed_addresses(doc, config.participants, settings.participant_balance)
    fund_weighted_escrows(doc, settings.escrow_groups)

    merge_prefunded(doc, prefunded)
    if prefunded:
        log.info("Merged %d pre-funded accounts", len(prefunded))
    zero_system_contracts(doc, settings)

    # Storage-only entries keep their remainder share
    locked = {a for a, ext in prefunded.items() if ext.balance is not None}

    reconcile_remainder(
        doc,
        settings,
        participants=config.participants,
        locked=locked | system,
    )
    return doc


def render(doc: GenesisDocument) -> str:
    # Insertion order only: identical input renders byte-identical output
    return json.dumps(doc.to_json(), indent=2) + "\n"
