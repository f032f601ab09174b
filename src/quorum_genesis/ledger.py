from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Collection, Dict, Iterable, Mapping, Optional, Sequence

from .addresses import unique
from .config import EscrowGroup, Settings
from .document import GenesisDocument
from .errors import ConfigurationError, SupplyOverflowError
from .units import to_tokens

log = logging.getLogger("ledger")


@dataclass(frozen=True)
class PrefundedAccount:
    """Externally supplied allocation (e.g. a token-sale list)."""

    balance: Optional[int] = None
    storage: Dict[str, str] = field(default_factory=dict)


def total_allocated(doc: GenesisDocument) -> int:
    # Python ints are arbitrary precision: no rounding can creep in here
    return sum(acct.balance for acct in doc.alloc.values())


def fund_fixed_addresses(
    doc: GenesisDocument, addresses: Iterable[str], amount_per_address: int
) -> None:
    """Give every address the same balance. Repeated addresses are funded once."""
    for addr in unique(addresses):
        doc.account(addr).balance = amount_per_address


def escrow_share(group: EscrowGroup) -> int:
    # ceil(amount / members); may over-allocate by up to len(members) - 1 units
    return -(-group.amount // len(group.members))


def fund_weighted_escrows(doc: GenesisDocument, escrow_groups: Sequence[EscrowGroup]) -> None:
    for group in escrow_groups:
        share = escrow_share(group)
        for addr in group.members:
            doc.account(addr).balance = share
        log.debug(
            "Escrow %s: %d members x %d units (target %d)",
            group.name,
            len(group.members),
            share,
            group.amount,
        )


def zero_system_contracts(doc: GenesisDocument, settings: Settings) -> None:
    """System contracts hold no funds, whatever an earlier pass gave them."""
    for addr in settings.system_contracts:
        doc.account(addr).balance = settings.system_contract_balance


def merge_prefunded(doc: GenesisDocument, accounts: Mapping[str, PrefundedAccount]) -> None:
    """Override-merge external accounts; their fields win over computed ones."""
    for addr, ext in accounts.items():
        acct = doc.account(addr)
        if ext.balance is not None:
            acct.balance = ext.balance
        if ext.storage:
            if acct.storage is None:
                acct.storage = {}
            acct.storage.update(ext.storage)


def reconcile_remainder(
    doc: GenesisDocument,
    settings: Settings,
    participants: Sequence[str] = (),
    locked: Collection[str] = (),
) -> int:
    """Hand the unallocated supply out so that balances sum to the total supply.

    `locked` addresses already have their final balance (external pre-funding)
    and never receive remainder. Returns the remainder in minimal units.
    """
    allocated = total_allocated(doc)
    remainder = settings.supply_units - allocated
    if remainder < 0:
        raise SupplyOverflowError(
            "alloc",
            "allocations exceed the total supply",
            f"allocated {to_tokens(allocated, settings.token_decimals)} of "
            f"{settings.total_supply} tokens",
        )

    if settings.remainder_policy == "single":
        if settings.remainder_address in locked:
            raise ConfigurationError(
                "prefund",
                "the remainder address cannot be pre-funded",
                settings.remainder_address,
            )
        recipients = [settings.remainder_address]
    else:
        recipients = [a for a in participants if a not in locked]
        if not recipients:
            raise ConfigurationError(
                "remainder_policy", "no participant left to receive the remainder"
            )

    log.info(
        "Found we had allocated %s tokens, putting remaining %s into %s",
        to_tokens(allocated, settings.token_decimals),
        to_tokens(remainder, settings.token_decimals),
        recipients[0] if len(recipients) == 1 else f"{len(recipients)} participants",
    )

    # The first `extra` recipients take one more unit so the sum stays exact
    share, extra = divmod(remainder, len(recipients))
    for i, addr in enumerate(recipients):
        doc.account(addr).balance += share + (1 if i < extra else 0)
    return remainder
