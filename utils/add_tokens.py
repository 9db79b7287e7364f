#!/usr/bin/env python3
"""
Add tokens from a JSON batch file to the per-chain token lists and
generate their logos.

Usage:
    add-tokens --input tokens.json [--token-lists-dir tokenLists]
        [--logos-dir logos] [--size 128] [--format png] [--force-logo] [--dry-run]

Each input entry needs chainId, address, symbol, decimals and logoURI.
New tokens are appended to tokenLists/{chainId}.json and their logo is
written to logos/{chainId}/{address}.{ext}.
"""

import os
import sys
import json
import argparse
from typing import Dict, List, Optional

from dotenv import load_dotenv

from logger import logger
from logo_fetcher import LogoFetcher
from logo_normalizer import SUPPORTED_FORMATS, logo_extension, write_logo
from token_registry import ADDED, RegistryError, TokenRegistry


DEFAULT_TOKEN_LISTS_DIR = "tokenLists"
DEFAULT_LOGOS_DIR = "logos"
DEFAULT_SIZE = "128"
DEFAULT_FORMAT = "png"


class InputError(Exception):
    """Input batch file is not a JSON array."""


class ConfigError(Exception):
    """Missing or invalid command line option."""


class RunStats:
    __slots__ = ("added", "written", "skipped", "failed")

    def __init__(self):
        self.added = 0
        self.written = 0
        self.skipped = 0
        self.failed = 0

    def as_dict(self):
        return {
            "added": self.added,
            "written": self.written,
            "skipped": self.skipped,
            "failed": self.failed,
        }


def normalize_chain_id(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        chain_id = value
    elif isinstance(value, str) and value.strip().isdigit():
        chain_id = int(value.strip())
    else:
        return None
    return chain_id if chain_id > 0 else None


def parse_token_entry(entry) -> Optional[Dict]:
    """
    Validate one input entry.

    Returns:
        Token dict with a lowercase address, or None if the entry is unusable
    """
    if not isinstance(entry, dict):
        logger.warning(f"skip invalid token entry: {json.dumps(entry)}")
        return None

    chain_id = normalize_chain_id(entry.get("chainId"))
    address = entry.get("address")
    symbol = entry.get("symbol")
    logo_uri = entry.get("logoURI")
    decimals = entry.get("decimals")

    if (
        chain_id is None
        or not isinstance(address, str) or not address
        or not isinstance(symbol, str) or not symbol
        or not isinstance(logo_uri, str) or not logo_uri
        or isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0
    ):
        logger.warning(f"skip invalid token entry: {json.dumps(entry)}")
        return None

    return {
        "chainId": chain_id,
        "address": address.lower(),
        "symbol": symbol,
        "decimals": decimals,
        "logoURI": logo_uri,
    }


def group_tokens_by_chain(entries: List) -> Dict[int, List[Dict]]:
    """Drop invalid entries and duplicate (chainId, address) keys, keeping the first."""
    tokens_by_chain = {}
    seen = set()
    for entry in entries:
        token = parse_token_entry(entry)
        if token is None:
            continue
        key = (token["chainId"], token["address"])
        if key in seen:
            continue
        seen.add(key)
        tokens_by_chain.setdefault(token["chainId"], []).append(token)
    return tokens_by_chain


def load_input(input_path: str) -> List:
    with open(input_path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except ValueError as e:
            raise InputError(f"invalid JSON in {input_path}: {e}") from e
    if not isinstance(data, list):
        raise InputError("input JSON must be an array")
    return data


def is_inside_directory(path: str, root: str) -> bool:
    real_path = os.path.realpath(path)
    real_root = os.path.realpath(root)
    try:
        return os.path.commonpath([real_path, real_root]) == real_root
    except ValueError:
        # different drives
        return False


class TokenPipeline:
    def __init__(
        self,
        token_lists_dir: str = DEFAULT_TOKEN_LISTS_DIR,
        logos_dir: str = DEFAULT_LOGOS_DIR,
        size: int = int(DEFAULT_SIZE),
        fmt: str = DEFAULT_FORMAT,
        force_logo: bool = False,
        dry_run: bool = False,
        base_dir: str = ".",
        fetcher: LogoFetcher = None,
        repo_root: str = None,
    ):
        """
        Args:
            token_lists_dir: Directory of {chainId}.json registries
            logos_dir: Root of the logos/{chainId}/ tree
            size: Edge length of generated logos
            fmt: Output format (png, jpg, jpeg or webp)
            force_logo: Regenerate logos that already exist
            dry_run: Report outcomes without touching registries or logos
            base_dir: Directory relative logoURI paths are resolved against
            fetcher: Logo source reader, a requests backed LogoFetcher by default
            repo_root: Local logo sources inside this tree are removed once
                processed, defaults to the current working directory
        """
        self.token_lists_dir = token_lists_dir
        self.logos_dir = logos_dir
        self.size = size
        self.fmt = fmt
        self.force_logo = force_logo
        self.dry_run = dry_run
        self.base_dir = base_dir
        self.fetcher = fetcher if fetcher is not None else LogoFetcher()
        self.repo_root = repo_root if repo_root is not None else os.getcwd()
        self.stats = RunStats()

    def logo_path(self, token: Dict) -> str:
        return os.path.join(
            self.logos_dir,
            str(token["chainId"]),
            f"{token['address']}.{logo_extension(self.fmt)}",
        )

    def run(self, tokens_by_chain: Dict[int, List[Dict]]) -> RunStats:
        for chain_id, tokens in tokens_by_chain.items():
            self.process_chain(chain_id, tokens)
        return self.stats

    def process_chain(self, chain_id: int, tokens: List[Dict]):
        registry = TokenRegistry(chain_id, self.token_lists_dir)
        outcomes = registry.merge(tokens)

        for token in tokens:
            if outcomes.get(token["address"]) != ADDED:
                # listed tokens keep whatever logo they have
                self.stats.skipped += 1
                continue
            self.stats.added += 1
            self.process_logo(token)

        if not self.dry_run:
            registry.save()

    def process_logo(self, token: Dict):
        target_path = self.logo_path(token)

        if not self.force_logo and os.path.exists(target_path):
            self.stats.skipped += 1
            return

        if self.dry_run:
            self.stats.skipped += 1
            return

        try:
            data, local_path = self.fetcher.read_logo(token["logoURI"], self.base_dir)
            write_logo(data, target_path, self.size, self.fmt)
        except Exception as e:
            self.stats.failed += 1
            logger.warning(f"logo failed for {token['address']} on {token['chainId']}: {e}")
            return

        self.stats.written += 1
        if local_path:
            self.remove_source_logo(local_path, target_path)

    def remove_source_logo(self, local_path: str, target_path: str):
        if not is_inside_directory(local_path, self.repo_root):
            return
        if os.path.realpath(local_path) == os.path.realpath(target_path):
            return
        try:
            os.remove(local_path)
            logger.ok(f"Removed source logo: {local_path}")
        except OSError as e:
            logger.warning(f"failed to remove source logo {local_path}: {e}")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="add-tokens",
        description="Merge new tokens into per-chain token lists and generate their logos.",
    )
    parser.add_argument("--input", help="JSON array of tokens to add")
    parser.add_argument(
        "--token-lists-dir",
        default=os.getenv("TOKEN_LISTS_DIR", DEFAULT_TOKEN_LISTS_DIR),
        help="directory of {chainId}.json token lists (default: %(default)s)",
    )
    parser.add_argument(
        "--logos-dir",
        default=os.getenv("LOGOS_DIR", DEFAULT_LOGOS_DIR),
        help="directory logos are written to (default: %(default)s)",
    )
    parser.add_argument("--size", default=DEFAULT_SIZE, help="logo edge length in pixels (default: %(default)s)")
    parser.add_argument("--format", default=DEFAULT_FORMAT, help="png, jpg, jpeg or webp (default: %(default)s)")
    parser.add_argument("--force-logo", action="store_true", help="regenerate logos that already exist")
    parser.add_argument("--dry-run", action="store_true", help="report what would change without writing anything")
    args = parser.parse_args(argv)
    if not args.input:
        parser.print_usage(sys.stderr)
    return args


def validate_options(args: argparse.Namespace):
    if not args.input:
        raise ConfigError("--input is required")

    try:
        size = int(str(args.size).strip())
    except ValueError:
        raise ConfigError(f"invalid --size: {args.size}")
    if size <= 0:
        raise ConfigError(f"invalid --size: {args.size}")

    fmt = str(args.format).lower()
    if fmt not in SUPPORTED_FORMATS:
        raise ConfigError(f"invalid --format: {fmt}")
    return size, fmt


def main(argv=None) -> int:
    load_dotenv(os.path.join(os.getcwd(), ".env"))
    args = parse_args(argv)

    try:
        size, fmt = validate_options(args)
        input_path = os.path.abspath(args.input)
        tokens_by_chain = group_tokens_by_chain(load_input(input_path))

        pipeline = TokenPipeline(
            token_lists_dir=args.token_lists_dir,
            logos_dir=args.logos_dir,
            size=size,
            fmt=fmt,
            force_logo=args.force_logo,
            dry_run=args.dry_run,
            base_dir=os.path.dirname(input_path),
        )
        stats = pipeline.run(tokens_by_chain)
    except (ConfigError, InputError, RegistryError, OSError) as e:
        logger.error(str(e))
        return 1

    logger.info("Done")
    logger.calc(f"Added: {stats.added}")
    logger.calc(f"Logos written: {stats.written}")
    logger.calc(f"Logos skipped: {stats.skipped}")
    logger.calc(f"Logos failed: {stats.failed}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
