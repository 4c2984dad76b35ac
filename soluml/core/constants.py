"""Shared constants for soluml.

Environment variable names and defaults used across the diagram and
Etherscan modules.
"""

# =============================================================================
# Diagram Rendering
# =============================================================================

# Graphviz layout engine used for dot -> svg (override with SOLUML_DOT_ENGINE)
DOT_ENGINE_ENV = "SOLUML_DOT_ENGINE"
DEFAULT_DOT_ENGINE = "dot"

# rsvg-convert binary used for svg -> png (override with SOLUML_RSVG_CONVERT)
RSVG_CONVERT_ENV = "SOLUML_RSVG_CONVERT"
DEFAULT_RSVG_CONVERT = "rsvg-convert"

# Base name used when the caller does not supply one
DEFAULT_OUTPUT_BASENAME = "classDiagram"

# =============================================================================
# Etherscan
# =============================================================================

ETHERSCAN_API_KEY_ENV = "ETHERSCAN_API_KEY"

ETHERSCAN_NETWORKS = ("mainnet", "ropsten", "kovan", "rinkeby", "goerli")

ETHERSCAN_MAINNET_URL = "https://api.etherscan.io/api"
ETHERSCAN_NETWORK_URL = "https://api-{network}.etherscan.io/api"

# Seconds before an Etherscan request is abandoned
ETHERSCAN_TIMEOUT = 30.0
