"""
Storage layout of the two system contracts.

Slot indexes follow the declaration order of each contract's state variables.

BlockVoting:
    1  voteThreshold            (0 under proof-of-work voting)
    2  voterCount
    3  mapping canVote          (address => bool)
    4  blockMakerCount
    5  mapping canCreateBlocks  (address => bool)

Governance:
    0  mapping isOwner          (address => bool)
    1  numOwners
"""
from __future__ import annotations

from typing import Dict, Iterable

from .config import NetworkConfig, Settings
from .document import GenesisDocument
from .storage import derive_slot_key, pad_scalar, scalar_slot_key

TRUE = pad_scalar(1, 1, True)

VOTE_THRESHOLD_SLOT = 1
VOTER_COUNT_SLOT = 2
CAN_VOTE_SLOT = 3
BLOCK_MAKER_COUNT_SLOT = 4
CAN_CREATE_BLOCKS_SLOT = 5

IS_OWNER_SLOT = 0
NUM_OWNERS_SLOT = 1


def map_addresses_at(storage: Dict[str, str], index: int, addresses: Iterable[str]) -> None:
    """Set `mapping(address => bool)` at `index` to true for every address."""
    for addr in addresses:
        storage[derive_slot_key(index, addr)] = TRUE


def set_scalar(storage: Dict[str, str], index: int, value: int) -> None:
    storage[scalar_slot_key(index)] = pad_scalar(value, 1, True)


def voting_contract_storage(config: NetworkConfig, settings: Settings) -> Dict[str, str]:
    threshold = config.threshold if settings.threshold_voting else 0
    storage: Dict[str, str] = {}
    set_scalar(storage, VOTE_THRESHOLD_SLOT, threshold or 0)
    set_scalar(storage, VOTER_COUNT_SLOT, len(config.voters))
    map_addresses_at(storage, CAN_VOTE_SLOT, config.voters)
    set_scalar(storage, BLOCK_MAKER_COUNT_SLOT, len(config.makers))
    map_addresses_at(storage, CAN_CREATE_BLOCKS_SLOT, config.makers)
    return storage


def governance_contract_storage(config: NetworkConfig, settings: Settings) -> Dict[str, str]:
    owners = config.governance_owners(settings)
    storage: Dict[str, str] = {}
    map_addresses_at(storage, IS_OWNER_SLOT, owners)
    set_scalar(storage, NUM_OWNERS_SLOT, len(owners))
    return storage


def write_voting_contract_storage(
    doc: GenesisDocument, config: NetworkConfig, settings: Settings
) -> None:
    doc.storage_of(settings.voting_contract).update(voting_contract_storage(config, settings))


def write_governance_contract_storage(
    doc: GenesisDocument, config: NetworkConfig, settings: Settings
) -> None:
    doc.storage_of(settings.governance_contract).update(
        governance_contract_storage(config, settings)
    )
