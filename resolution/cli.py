import argparse
import asyncio
import json
import sys

from . import __version__
from .config import ResolutionConfig
from .env import load_env
from .errors import ConfigurationError, NamingServiceError, ResolutionError
from .resolution import Resolution

EXIT_RESOLUTION_ERROR = 2
EXIT_SERVICE_ERROR = 3


def build_resolution(args: argparse.Namespace) -> Resolution:
    config = ResolutionConfig.from_env(
        use_blockchain=False if args.api else None,
        api_url=args.api_url,
        ethereum_url=args.ethereum_url,
        zilliqa_url=args.zilliqa_url,
    )
    return Resolution.from_config(config)


def cmd_resolve(resolution: Resolution, args: argparse.Namespace) -> None:
    response = asyncio.run(resolution.resolve(args.domain))
    print(json.dumps(response.to_dict(), indent=2))


def cmd_address(resolution: Resolution, args: argparse.Namespace) -> None:
    print(asyncio.run(resolution.address_or_throw(args.domain, args.ticker)))


def cmd_owner(resolution: Resolution, args: argparse.Namespace) -> None:
    owner = asyncio.run(resolution.owner(args.domain))
    print(owner if owner else "No owner")


def cmd_ipfs_hash(resolution: Resolution, args: argparse.Namespace) -> None:
    print(asyncio.run(resolution.ipfs_hash(args.domain)))


def cmd_ipfs_redirect(resolution: Resolution, args: argparse.Namespace) -> None:
    print(asyncio.run(resolution.ipfs_redirect(args.domain)))


def cmd_email(resolution: Resolution, args: argparse.Namespace) -> None:
    print(asyncio.run(resolution.email(args.domain)))


def cmd_namehash(resolution: Resolution, args: argparse.Namespace) -> None:
    print(resolution.namehash(args.domain))


def cmd_service_name(resolution: Resolution, args: argparse.Namespace) -> None:
    print(resolution.service_name(args.domain))


def cmd_supported(resolution: Resolution, args: argparse.Namespace) -> None:
    print(f"Supported: {resolution.is_supported_domain(args.domain)}")
    print(f"Supported in network: {bool(resolution.is_supported_domain_in_network(args.domain))}")


def cmd_reverse(resolution: Resolution, args: argparse.Namespace) -> None:
    print(asyncio.run(resolution.reverse(args.address, args.ticker)))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="resolution", description="Resolve blockchain domain names")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--api", action="store_true", help="Use the Unstoppable Domains API instead of blockchain nodes")
    parser.add_argument("--api-url", help="API proxy URL (or set RESOLUTION_API_URL)")
    parser.add_argument("--ethereum-url", help="Ethereum JSON-RPC URL for ENS and CNS (or set RESOLUTION_ETHEREUM_URL)")
    parser.add_argument("--zilliqa-url", help="Zilliqa JSON-RPC URL for ZNS (or set RESOLUTION_ZILLIQA_URL)")

    subparsers = parser.add_subparsers(dest="command")

    res = subparsers.add_parser("resolve", help="Resolve a domain to its addresses and owner (JSON)")
    res.add_argument("domain", help="Domain name, e.g. brad.zil")
    res.set_defaults(func=cmd_resolve)

    adr = subparsers.add_parser("address", help="Resolve a domain to a currency address")
    adr.add_argument("domain", help="Domain name")
    adr.add_argument("ticker", help="Currency ticker, e.g. ZIL, BTC, ETH")
    adr.set_defaults(func=cmd_address)

    own = subparsers.add_parser("owner", help="Show the owner address of a domain")
    own.add_argument("domain", help="Domain name")
    own.set_defaults(func=cmd_owner)

    ipfs = subparsers.add_parser("ipfs-hash", help="Show the IPFS hash of a domain's website")
    ipfs.add_argument("domain", help="Domain name")
    ipfs.set_defaults(func=cmd_ipfs_hash)

    redirect = subparsers.add_parser("ipfs-redirect", help="Show the redirect URL of a domain")
    redirect.add_argument("domain", help="Domain name")
    redirect.set_defaults(func=cmd_ipfs_redirect)

    eml = subparsers.add_parser("email", help="Show the whois email of a domain")
    eml.add_argument("domain", help="Domain name")
    eml.set_defaults(func=cmd_email)

    nh = subparsers.add_parser("namehash", help="Compute the protocol namehash of a domain")
    nh.add_argument("domain", help="Domain name")
    nh.set_defaults(func=cmd_namehash)

    svc = subparsers.add_parser("service-name", help="Show which naming service owns a domain")
    svc.add_argument("domain", help="Domain name")
    svc.set_defaults(func=cmd_service_name)

    sup = subparsers.add_parser("supported", help="Check whether a domain is supported")
    sup.add_argument("domain", help="Domain name")
    sup.set_defaults(func=cmd_supported)

    rev = subparsers.add_parser("reverse", help="Find the ENS name registered for an address")
    rev.add_argument("address", help="Ethereum address")
    rev.add_argument("--ticker", default="ETH", help="Currency ticker (default: ETH)")
    rev.set_defaults(func=cmd_reverse)

    return parser


def main(argv=None) -> None:
    # Load .env if present (RESOLUTION_ETHEREUM_URL, RESOLUTION_API_URL, etc.)
    load_env()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if not hasattr(args, "func"):
        parser.print_help()
        return

    try:
        resolution = build_resolution(args)
        args.func(resolution, args)
    except ConfigurationError as e:
        raise SystemExit(f"Configuration error: {e}")
    except ResolutionError as e:
        print(f"[{e.code.value}] {e}", file=sys.stderr)
        raise SystemExit(EXIT_RESOLUTION_ERROR)
    except NamingServiceError as e:
        print(f"[error] {e}", file=sys.stderr)
        raise SystemExit(EXIT_SERVICE_ERROR)


if __name__ == "__main__":
    main()
