from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv

from .addresses import normalize_address, normalize_addresses, unique
from .errors import ConfigurationError
from .project_constants import (
    DESIRED_SECONDS_PER_BLOCK,
    EXPECTED_MAKER_HASHRATE,
    GOVERNANCE_CONTRACT_ADDRESS,
    REMAINDER_ADDRESS,
    REMAINDER_POLICIES,
    RESERVE_OWNERS,
    TOKEN_DECIMALS,
    TOTAL_SUPPLY,
    VOTING_CONTRACT_ADDRESS,
)
from .units import parse_int, to_units

# Settings field -> environment variable that overrides it
_ENV_OVERRIDES = {
    "voting_contract": "GENESIS_VOTING_CONTRACT",
    "governance_contract": "GENESIS_GOVERNANCE_CONTRACT",
    "remainder_address": "GENESIS_REMAINDER_ADDRESS",
    "total_supply": "GENESIS_TOTAL_SUPPLY",
    "token_decimals": "GENESIS_TOKEN_DECIMALS",
    "expected_maker_hashrate": "GENESIS_MAKER_HASHRATE",
    "seconds_per_block": "GENESIS_SECONDS_PER_BLOCK",
    "remainder_policy": "GENESIS_REMAINDER_POLICY",
    "threshold_voting": "GENESIS_THRESHOLD_VOTING",
    "require_chain_id": "GENESIS_REQUIRE_CHAIN_ID",
    "dynamic_difficulty": "GENESIS_DYNAMIC_DIFFICULTY",
    "participant_balance": "GENESIS_PARTICIPANT_BALANCE",
}


@dataclass(frozen=True)
class EscrowGroup:
    name: str
    amount: int  # minimal units, shared by all members
    members: Tuple[str, ...]


@dataclass(frozen=True)
class Settings:
    """Deployment constants and profile switches for one network."""

    voting_contract: str = VOTING_CONTRACT_ADDRESS
    governance_contract: str = GOVERNANCE_CONTRACT_ADDRESS
    remainder_address: str = REMAINDER_ADDRESS
    total_supply: int = TOTAL_SUPPLY  # whole tokens
    token_decimals: int = TOKEN_DECIMALS
    expected_maker_hashrate: int = EXPECTED_MAKER_HASHRATE
    seconds_per_block: int = DESIRED_SECONDS_PER_BLOCK
    reserve_owners: Tuple[str, ...] = RESERVE_OWNERS
    escrow_groups: Tuple[EscrowGroup, ...] = ()

    # False means proof-of-work voting: threshold slot is 0
    threshold_voting: bool = False
    require_chain_id: bool = True
    dynamic_difficulty: bool = True
    remainder_policy: str = "single"
    participant_balance: Optional[int] = None  # minimal units
    system_contract_balance: int = 0

    @property
    def supply_units(self) -> int:
        return self.total_supply * 10**self.token_decimals

    @property
    def system_contracts(self) -> Tuple[str, str]:
        return (self.voting_contract, self.governance_contract)

    @staticmethod
    def from_env(profile_path: str | None = None) -> "Settings":
        load_dotenv()

        raw: Dict[str, Any] = {}
        path = profile_path or os.getenv("GENESIS_PROFILE", "").strip()
        if path:
            raw = read_profile(path)

        for key, env_name in _ENV_OVERRIDES.items():
            env_value = os.getenv(env_name, "").strip()
            if env_value:
                raw[key] = env_value

        return Settings.from_mapping(raw)

    @staticmethod
    def from_mapping(raw: Dict[str, Any]) -> "Settings":
        unknown = sorted(set(raw) - set(Settings.__dataclass_fields__) - {"escrows"})
        if unknown:
            raise ConfigurationError("profile", "unknown keys", unknown)

        d = Settings()
        decimals = parse_int(raw.get("token_decimals", d.token_decimals), "token_decimals")
        remainder_address = normalize_address(
            raw.get("remainder_address", d.remainder_address), "remainder_address"
        )

        policy = str(raw.get("remainder_policy", d.remainder_policy)).strip().lower()
        if policy not in REMAINDER_POLICIES:
            raise ConfigurationError(
                "remainder_policy", f"must be one of {REMAINDER_POLICIES}", policy
            )

        if "reserve_owners" in raw:
            reserve_owners = normalize_addresses(raw["reserve_owners"], "reserve_owners")
        else:
            # The default reserve follows the remainder address
            reserve_owners = (remainder_address,)

        participant_balance = raw.get("participant_balance")
        if participant_balance is not None:
            participant_balance = to_units(participant_balance, decimals, "participant_balance")

        settings = Settings(
            voting_contract=normalize_address(
                raw.get("voting_contract", d.voting_contract), "voting_contract"
            ),
            governance_contract=normalize_address(
                raw.get("governance_contract", d.governance_contract), "governance_contract"
            ),
            remainder_address=remainder_address,
            total_supply=parse_int(raw.get("total_supply", d.total_supply), "total_supply"),
            token_decimals=decimals,
            expected_maker_hashrate=parse_int(
                raw.get("expected_maker_hashrate", d.expected_maker_hashrate),
                "expected_maker_hashrate",
            ),
            seconds_per_block=parse_int(
                raw.get("seconds_per_block", d.seconds_per_block), "seconds_per_block", 1
            ),
            reserve_owners=reserve_owners,
            escrow_groups=load_escrow_groups(
                raw.get("escrows", raw.get("escrow_groups")), decimals
            ),
            threshold_voting=_as_bool(
                raw.get("threshold_voting", d.threshold_voting), "threshold_voting"
            ),
            require_chain_id=_as_bool(
                raw.get("require_chain_id", d.require_chain_id), "require_chain_id"
            ),
            dynamic_difficulty=_as_bool(
                raw.get("dynamic_difficulty", d.dynamic_difficulty), "dynamic_difficulty"
            ),
            remainder_policy=policy,
            participant_balance=participant_balance,
            system_contract_balance=parse_int(
                raw.get("system_contract_balance", d.system_contract_balance),
                "system_contract_balance",
            ),
        )

        if settings.voting_contract == settings.governance_contract:
            raise ConfigurationError(
                "governance_contract", "must differ from voting_contract"
            )
        if settings.remainder_address in settings.system_contracts:
            raise ConfigurationError(
                "remainder_address", "must not be a system contract"
            )
        return settings


def read_profile(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.is_file():
        raise ConfigurationError("profile", "file not found", str(p))
    try:
        obj = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError("profile", "not valid JSON", str(e)) from None
    if not isinstance(obj, dict):
        raise ConfigurationError("profile", "must be a JSON object")
    return obj


def load_escrow_groups(raw: Any, decimals: int) -> Tuple[EscrowGroup, ...]:
    """Parse `[{"name": ..., "amount": "<whole tokens>", "members": [...]}, ...]`."""
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigurationError("escrows", "expected a list of escrow groups", raw)

    groups = []
    seen = set()
    for i, rec in enumerate(raw):
        field = f"escrows[{i}]"
        if not isinstance(rec, dict):
            raise ConfigurationError(field, "expected an object", rec)
        name = str(rec.get("name") or "").strip()
        if not name:
            raise ConfigurationError(f"{field}.name", "must be a non-empty string")
        if name in seen:
            raise ConfigurationError(f"{field}.name", "duplicate escrow group", name)
        seen.add(name)
        if "amount" not in rec:
            raise ConfigurationError(f"{field}.amount", "missing")
        members = normalize_addresses(rec.get("members"), f"{field}.members")
        if not members:
            raise ConfigurationError(f"{field}.members", "escrow group has no members")
        groups.append(
            EscrowGroup(
                name=name,
                amount=to_units(rec["amount"], decimals, f"{field}.amount"),
                members=members,
            )
        )
    return tuple(groups)


def _as_bool(v: Any, field: str) -> bool:
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in {"1", "true", "yes", "y", "on"}:
        return True
    if s in {"0", "false", "no", "n", "off"}:
        return False
    raise ConfigurationError(field, "expected a boolean", v)


@dataclass(frozen=True)
class NetworkConfig:
    """Who makes blocks, who votes and who owns governance. Immutable once loaded."""

    makers: Tuple[str, ...]
    voters: Tuple[str, ...] = ()
    owners: Optional[Tuple[str, ...]] = None
    threshold: Optional[int] = None
    chain_id: Optional[int] = None
    gas_limit: Optional[int] = None
    funded_observers: Tuple[str, ...] = ()

    @property
    def participants(self) -> Tuple[str, ...]:
        return unique(self.voters + self.makers + self.funded_observers)

    def governance_owners(self, settings: Settings) -> Tuple[str, ...]:
        if self.owners is not None:
            return self.owners
        return unique(self.voters + settings.reserve_owners)

    @staticmethod
    def from_json(obj: Any, settings: Settings) -> "NetworkConfig":
        if not isinstance(obj, dict):
            raise ConfigurationError("config", "must be a JSON object")

        makers = normalize_addresses(obj.get("makers"), "makers")
        if not makers:
            raise ConfigurationError("makers", "BlockMaker addresses missing or less than 1")

        voters = normalize_addresses(obj.get("voters"), "voters")

        owners = None
        if obj.get("owners") is not None:
            owners = normalize_addresses(obj["owners"], "owners")
            if not owners:
                raise ConfigurationError("owners", "must not be empty when given")

        threshold = None
        if settings.threshold_voting:
            if obj.get("threshold") is None:
                raise ConfigurationError("threshold", "required for threshold voting")
            threshold = parse_int(obj["threshold"], "threshold", 1)
            if threshold > len(voters):
                raise ConfigurationError(
                    "threshold",
                    f"exceeds the number of voters ({len(voters)})",
                    threshold,
                )
        elif obj.get("threshold") is not None:
            raise ConfigurationError(
                "threshold", "set, but the profile uses proof-of-work voting"
            )

        chain_id = None
        if obj.get("chainID") is not None:
            chain_id = parse_int(obj["chainID"], "chainID", 1)
        elif settings.require_chain_id:
            raise ConfigurationError("chainID", "not found in config")

        gas_limit = None
        if obj.get("gasLimit") is not None:
            gas_limit = parse_int(obj["gasLimit"], "gasLimit", 1)

        return NetworkConfig(
            makers=makers,
            voters=voters,
            owners=owners,
            threshold=threshold,
            chain_id=chain_id,
            gas_limit=gas_limit,
            funded_observers=normalize_addresses(obj.get("fundedObservers"), "fundedObservers"),
        )
