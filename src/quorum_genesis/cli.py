from __future__ import annotations

import argparse
import logging

from .addresses import normalize_address
from .config import Settings
from .errors import GenesisError
from .genesis import build
from .ledger import total_allocated
from .loaders import (
    load_network_config,
    load_prefunded,
    load_template,
    write_genesis,
)
from .project_constants import CONFIG_FILENAME, OUTPUT_FILENAME
from .storage import derive_slot_key
from .units import parse_int, to_tokens
from .verify import verify_genesis


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def cmd_build(args: argparse.Namespace) -> int:
    settings = Settings.from_env(profile_path=args.profile)
    log = logging.getLogger("build")

    config = load_network_config(args.config, settings)
    template = load_template(args.template, settings) if args.template else None
    prefunded = load_prefunded(args.prefund) if args.prefund else None

    log.info("Makers            : %d", len(config.makers))
    log.info("Voters            : %d", len(config.voters))
    log.info("Funded observers  : %d", len(config.funded_observers))
    log.info("Remainder policy  : %s", settings.remainder_policy)

    # Everything is computed before the output file is touched
    doc = build(config, settings, template=template, prefunded=prefunded)
    write_genesis(doc, args.out)

    print("========================================")
    print("QUORUM GENESIS")
    print("========================================")
    print(f"Chain ID      : {doc.chain_config.get('chainID')}")
    print(f"Gas limit     : {doc.gas_limit}")
    print(f"Difficulty    : {doc.difficulty}")
    print(f"Accounts      : {len(doc.alloc)}")
    print(f"Total supply  : {to_tokens(total_allocated(doc), settings.token_decimals)}")
    print("----------------------------------------")
    print(f"Wrote genesis : {args.out}")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    settings = Settings.from_env(profile_path=args.profile)
    config = load_network_config(args.config, settings)
    result = verify_genesis(args.genesis, config, settings)
    print("GENESIS VERIFIED")
    print(f"Accounts      : {result['accounts']}")
    print(f"Voters        : {result['voters']}")
    print(f"Makers        : {result['makers']}")
    print(f"Owners        : {result['owners']}")
    print(f"Total supply  : {to_tokens(result['total_supply'], settings.token_decimals)}")
    return 0


def cmd_slot(args: argparse.Namespace) -> int:
    """Prints the storage key of one mapping entry."""
    index = parse_int(args.index, "index")
    address = normalize_address(args.address, "address")
    print(derive_slot_key(index, address))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="quorum-genesis",
        description="Deterministic genesis builder for Quorum voting networks.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument(
        "--profile",
        default=None,
        help="Deployment profile JSON (else GENESIS_PROFILE env, else defaults).",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    b = sub.add_parser("build", help="Build the genesis document.")
    b.add_argument("--config", default=CONFIG_FILENAME, help="Network config JSON path.")
    b.add_argument(
        "--template",
        default=None,
        help="Genesis template JSON declaring the system contracts.",
    )
    b.add_argument(
        "--prefund",
        default=None,
        help="Pre-funded accounts JSON (e.g. token sale); overrides computed balances.",
    )
    b.add_argument("--out", default=OUTPUT_FILENAME, help="Genesis output JSON path.")
    b.set_defaults(func=cmd_build)

    v = sub.add_parser(
        "verify", help="Check an existing genesis against its config."
    )
    v.add_argument("--genesis", default=OUTPUT_FILENAME, help="Genesis JSON path.")
    v.add_argument("--config", default=CONFIG_FILENAME, help="Network config JSON path.")
    v.set_defaults(func=cmd_verify)

    s = sub.add_parser("slot", help="Print the storage key of a mapping entry.")
    s.add_argument("--index", required=True, help="Base slot of the mapping.")
    s.add_argument("--address", required=True, help="Mapping key (address).")
    s.set_defaults(func=cmd_slot)

    return p


def run(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    try:
        return args.func(args)
    except GenesisError as e:
        logging.getLogger("quorum-genesis").error("%s", e)
        return 1


def main() -> None:
    raise SystemExit(run())
