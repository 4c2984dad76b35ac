"""Etherscan client for verified contract source code.

Fetches the verified Solidity sources of a deployed contract and hands
each file to a SourceParser to build the class entities for a diagram.

Etherscan returns either a single flattened file in the ``SourceCode``
field, or a multi-file bundle serialized as JSON inside that field,
sometimes wrapped in an extra pair of curly braces (``{{...}}``).
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional

import httpx

from ..constants import (
    ETHERSCAN_API_KEY_ENV,
    ETHERSCAN_MAINNET_URL,
    ETHERSCAN_NETWORK_URL,
    ETHERSCAN_NETWORKS,
    ETHERSCAN_TIMEOUT,
)
from ..diagrams.models import ClassEntity
from ..errors import SourceFetchError, SourceParseError
from .base import SourceFile, SourceParser

logger = logging.getLogger(__name__)


class EtherscanClient:
    """Retrieves verified source code from the Etherscan API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        network: str = "mainnet",
        parser: Optional[SourceParser] = None,
        client: Optional[httpx.Client] = None,
    ):
        """Initialize EtherscanClient.

        Args:
            api_key: Etherscan API key. Defaults to ETHERSCAN_API_KEY env var.
            network: One of mainnet, ropsten, kovan, rinkeby, goerli
            parser: Parser used by get_classes()
            client: httpx client to send requests with (for tests/proxies).
                    Not closed here. Without one, each request opens and
                    closes its own client.
        """
        if network not in ETHERSCAN_NETWORKS:
            raise ValueError(
                f"Invalid network '{network}'. "
                f"Must be one of: {', '.join(ETHERSCAN_NETWORKS)}"
            )

        self.network = network
        self.url = (
            ETHERSCAN_MAINNET_URL
            if network == "mainnet"
            else ETHERSCAN_NETWORK_URL.format(network=network)
        )
        self._api_key = api_key if api_key is not None else os.getenv(ETHERSCAN_API_KEY_ENV, "")
        self._parser = parser
        self._client = client

    def get_classes(self, address: str) -> List[ClassEntity]:
        """Fetch and parse every source file of a verified contract.

        Raises:
            SourceFetchError: The source could not be retrieved
            SourceParseError: A file could not be parsed
        """
        if self._parser is None:
            raise ValueError("EtherscanClient needs a SourceParser to build class entities")

        entities: List[ClassEntity] = []
        for source_file in self.get_source_code(address):
            entities.extend(self.parse_source_file(source_file))

        logger.info("Parsed %d classes from contract %s", len(entities), address)
        return entities

    def parse_source_file(self, source_file: SourceFile) -> List[ClassEntity]:
        """Parse one source file, attaching the source text to any failure."""
        try:
            return self._parser.parse_source(source_file.code, source_file.filename)
        except SourceParseError:
            raise
        except Exception as e:
            raise SourceParseError(
                f"Failed to parse solidity code from {source_file.filename}: {e}",
                source_file.filename,
                source_file.code,
            ) from e

    def _get(self, params: Dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return self._client.get(self.url, params=params)
        with httpx.Client(timeout=ETHERSCAN_TIMEOUT, follow_redirects=True) as client:
            return client.get(self.url, params=params)

    def get_source_code(self, address: str) -> List[SourceFile]:
        """Call Etherscan for the verified source code of a contract.

        Args:
            address: Contract address with a 0x prefix

        Returns:
            One SourceFile per file in the verified bundle

        Raises:
            SourceFetchError: HTTP failure, unexpected payload or unverified contract
        """
        description = f"get verified source code for address {address} from Etherscan API"
        params = {
            "module": "contract",
            "action": "getsourcecode",
            "address": address,
            "apikey": self._api_key,
        }

        try:
            response = self._get(params)
        except httpx.RequestError as e:
            raise SourceFetchError(f"Failed to {description}. No HTTP response: {e}", address) from e

        if response.status_code != 200:
            raise SourceFetchError(
                f"Failed to {description}. HTTP status code {response.status_code}, "
                f"status text: {response.reason_phrase}",
                address,
                response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SourceFetchError(
                f"Failed to {description}. Response is not JSON: {response.text[:200]}",
                address,
                response.text,
            ) from e

        results = data.get("result") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise SourceFetchError(
                f"Failed to {description}. No result array in HTTP data: {json.dumps(data)[:500]}",
                address,
                data,
            )

        files: List[SourceFile] = []
        for result in results:
            files.extend(_unpack_result(result, address, description))

        logger.debug("Fetched %d source files for %s", len(files), address)
        return files


def _unpack_result(result: Dict[str, Any], address: str, description: str) -> List[SourceFile]:
    """Split one Etherscan result into its source files."""
    source_code = result.get("SourceCode") if isinstance(result, dict) else None
    if not source_code:
        raise SourceFetchError(
            f"Failed to {description}. Most likely the contract has not been verified on Etherscan.",
            address,
            result,
        )

    # Already-decoded multi-file bundle
    if isinstance(source_code, dict):
        return _files_from_bundle(source_code, address, description)

    if not isinstance(source_code, str):
        raise SourceFetchError(
            f"Failed to {description}. Unexpected SourceCode type {type(source_code).__name__}.",
            address,
            result,
        )

    if not source_code.startswith("{"):
        # Flattened single file
        return [SourceFile(code=source_code, filename=address)]

    # Etherscan wraps standard-json bundles in an extra pair of braces
    text = source_code[1:-1] if source_code.startswith("{{") else source_code
    try:
        bundle = json.loads(text)
    except ValueError as e:
        raise SourceFetchError(
            f"Failed to parse Solidity source code from Etherscan's SourceCode. {source_code[:500]}",
            address,
            source_code,
        ) from e

    return _files_from_bundle(bundle, address, description)


def _files_from_bundle(bundle: Dict[str, Any], address: str, description: str) -> List[SourceFile]:
    sources = bundle.get("sources", bundle) if isinstance(bundle, dict) else None
    if not isinstance(sources, dict):
        raise SourceFetchError(
            f"Failed to {description}. Source bundle has no sources mapping: {json.dumps(bundle)[:500]}",
            address,
            bundle,
        )
    files = []
    for filename, entry in sources.items():
        if not isinstance(entry, dict) or "content" not in entry:
            raise SourceFetchError(
                f"Failed to {description}. Source entry '{filename}' has no content.",
                address,
                bundle,
            )
        files.append(SourceFile(code=entry["content"], filename=filename))
    return files
