#!/usr/bin/env python3
"""
Per-chain token registry stored as tokenLists/{chainId}.json.

Entries are append-only: an address that is already listed is never
updated or removed, new addresses are appended in input order.
"""

import os
import json
from typing import Dict, List

from logger import logger


ADDED = "added"
ALREADY_EXISTS = "already-exists"


class RegistryError(Exception):
    """Token list file exists but can't be read or parsed."""


def registry_path(token_lists_dir: str, chain_id: int) -> str:
    return os.path.join(token_lists_dir, f"{chain_id}.json")


class TokenRegistry:
    def __init__(self, chain_id: int, token_lists_dir: str = "tokenLists"):
        """
        Load the registry for one chain.

        Args:
            chain_id: Chain the registry belongs to
            token_lists_dir: Directory holding the {chainId}.json files

        Raises:
            RegistryError: If the file exists but can't be read or parsed
        """
        self.chain_id = chain_id
        self.file_path = registry_path(token_lists_dir, chain_id)
        self.tokens = self._load_registry()
        self.by_address = {}
        for item in self.tokens:
            if isinstance(item, dict) and item.get("address"):
                self.by_address[str(item["address"]).lower()] = item

    def _load_registry(self) -> List[Dict]:
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as e:
            raise RegistryError(f"Could not load token list {self.file_path}: {e}") from e

        if not isinstance(data, list):
            logger.warning(f"{self.file_path} is not a JSON array, starting from an empty list")
            return []
        return data

    def merge(self, tokens: List[Dict]) -> Dict[str, str]:
        """
        Append tokens whose address isn't listed yet.

        Args:
            tokens: Validated token dicts for this chain (lowercase addresses)

        Returns:
            Dictionary of address -> ADDED or ALREADY_EXISTS
        """
        outcomes = {}
        for token in tokens:
            address = token["address"]
            if address in self.by_address:
                logger.warning(f"token already exists for chain {self.chain_id}: {address}")
                outcomes[address] = ALREADY_EXISTS
                continue

            entry = {
                "chainId": token["chainId"],
                "address": address,
                "symbol": token["symbol"],
                "decimals": token["decimals"],
            }
            self.tokens.append(entry)
            self.by_address[address] = entry
            outcomes[address] = ADDED
        return outcomes

    def save(self):
        """Write the registry back as 2-space indented JSON."""
        os.makedirs(os.path.dirname(self.file_path) or ".", exist_ok=True)
        with open(self.file_path, "w", encoding="utf-8") as f:
            f.write(json.dumps(self.tokens, indent=2, ensure_ascii=False) + "\n")
        logger.debug(f"Saved {len(self.tokens)} tokens to {self.file_path}")
