"""
XChain Proofs - Constants
Function selectors, storage-slot heuristics and the built-in chain table.
"""

# =============================================================================
# FUNCTION SELECTORS (4-byte signatures)
# =============================================================================

FUNCTION_SELECTORS = {
    # ERC20 Standard
    "name": "06fdde03",
    "symbol": "95d89b41",
    "decimals": "313ce567",
    "totalSupply": "18160ddd",
    "balanceOf": "70a08231",
}

# Argument and return types of the ERC20 read calls, used with eth-abi
ERC20_CALL_TYPES = {
    "name": ([], ["string"]),
    "symbol": ([], ["string"]),
    "decimals": ([], ["uint8"]),
    "totalSupply": ([], ["uint256"]),
    "balanceOf": (["address"], ["uint256"]),
}

# =============================================================================
# STORAGE SLOT SEARCH
# =============================================================================

# Mapping slot indices seen most often in deployed tokens, probed first
SLOT_SHORTLIST = (
    0x65,  # Aragon Test Xi (Mumbai) 0xb707dfe506ce7e10374c14de6891da3059d989b2
    0x1,   # Tally Compound (Ethereum) 0xc00e94Cb662C3520282E6f5717214004A7f26888
    0x33,  # DAO Haus Test Xi (Polygon) 0x4d0a8159B88139341c1d1078C8A97ff6001dda91
)

# Search space is slot indices [0, MAX_SLOT_INDEX)
MAX_SLOT_INDEX = 256

ZERO_HASH = "0x" + "00" * 32

# =============================================================================
# CHAIN CONFIGURATIONS
# =============================================================================

CHAIN_CONFIG = {
    1: {
        "name": "Ethereum Mainnet",
        "chain": "ETH",
        "icon": "ethereum",
        "short_name": "eth",
        "network_id": 1,
        "slip44": 60,
        "hardfork": "cancun",
        "rpc_urls": [
            "https://ethereum.publicnode.com",
            "https://ethereum-rpc.publicnode.com",
        ],
        "features": [{"name": "EIP155"}, {"name": "EIP1559"}],
        "native_currency": {"name": "Ether", "symbol": "ETH", "decimals": 18},
        "info_url": "https://ethereum.org",
        "ens": {"registry": "0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e"},
        "explorers": [
            {"name": "etherscan", "url": "https://etherscan.io", "standard": "EIP3091"},
            {"name": "blockscout", "url": "https://eth.blockscout.com", "icon": "blockscout", "standard": "EIP3091"},
        ],
    },
    56: {
        "name": "BNB Smart Chain Mainnet",
        "chain": "BSC",
        "short_name": "bnb",
        "network_id": 56,
        "slip44": 714,
        "hardfork": "shanghai",
        # Same as cancun, but without 4788
        "custom_eips": [1153, 4844, 5656, 6780, 7516],
        "rpc_urls": [
            "https://bsc-dataseed1.bnbchain.org",
            "https://bsc-dataseed2.bnbchain.org",
            "https://bsc-dataseed3.bnbchain.org",
            "https://bsc-dataseed4.bnbchain.org",
            "https://bsc-dataseed1.defibit.io",
            "https://bsc-dataseed2.defibit.io",
            "https://bsc-dataseed1.ninicoin.io",
            "https://bsc-dataseed2.ninicoin.io",
            "https://bsc.publicnode.com",
        ],
        "native_currency": {"name": "BNB Chain Native Token", "symbol": "BNB", "decimals": 18},
        "info_url": "https://www.bnbchain.org/en",
        "explorers": [
            {"name": "bscscan", "url": "https://bscscan.com", "standard": "EIP3091"},
        ],
    },
    42161: {
        "name": "Arbitrum One",
        "chain": "ETH",
        "short_name": "arb1",
        "network_id": 42161,
        "slip44": 9001,
        "hardfork": "london",
        "rpc_urls": [
            "https://arb1.arbitrum.io/rpc",
            "https://arbitrum-one.publicnode.com",
        ],
        "native_currency": {"name": "Ether", "symbol": "ETH", "decimals": 18},
        "info_url": "https://arbitrum.io",
        "explorers": [
            {"name": "Arbiscan", "url": "https://arbiscan.io", "standard": "EIP3091"},
            {"name": "Arbitrum Explorer", "url": "https://explorer.arbitrum.io", "standard": "EIP3091"},
        ],
        "parent": {
            "type": "L2",
            "chain": "eip155-1",
            "bridges": [{"url": "https://bridge.arbitrum.io"}],
        },
    },
    10: {
        "name": "OP Mainnet",
        "chain": "ETH",
        "short_name": "oeth",
        "network_id": 10,
        "slip44": 614,
        "hardfork": "cancun",
        "rpc_urls": [
            "https://mainnet.optimism.io",
            "https://optimism.publicnode.com",
        ],
        "native_currency": {"name": "Ether", "symbol": "ETH", "decimals": 18},
        "info_url": "https://optimism.io",
        "explorers": [
            {"name": "etherscan", "url": "https://optimistic.etherscan.io", "icon": "etherscan", "standard": "EIP3091"},
            {"name": "blockscout", "url": "https://optimism.blockscout.com", "icon": "blockscout", "standard": "EIP3091"},
        ],
    },
    137: {
        "name": "Polygon Mainnet",
        "chain": "Polygon",
        "icon": "polygon",
        "short_name": "matic",
        "network_id": 137,
        "slip44": 966,
        "hardfork": "london",
        "rpc_urls": [
            "https://polygon-rpc.com/",
            "https://polygon-bor.publicnode.com",
        ],
        "native_currency": {"name": "MATIC", "symbol": "MATIC", "decimals": 18},
        "info_url": "https://polygon.technology/",
        "explorers": [
            {"name": "polygonscan", "url": "https://polygonscan.com", "standard": "EIP3091"},
        ],
    },
    80002: {
        "name": "Polygon Testnet (Amoy)",
        "chain": "polygon-testnet",
        "icon": "polygon-testnet-amoy",
        "short_name": "polygon-amoy",
        "network_id": 80002,
        "hardfork": "london",
        "rpc_urls": ["https://rpc-amoy.polygon.technology/"],
        "native_currency": {"name": "MATIC", "symbol": "MATIC", "decimals": 18},
        "info_url": "https://polygon.technology/blog/introducing-the-amoy-testnet-for-polygon-pos",
        "explorers": [
            {"name": "polygonscan-amoy", "url": "https://amoy.polygonscan.com/", "standard": "EIP3091"},
        ],
    },
    23294: {
        "name": "Oasis Sapphire",
        "chain": "oasis",
        "icon": "https://votee.oasis.io/rose.png",
        "short_name": "sapphire",
        "network_id": 0x5afe,
        "hardfork": "london",
        "cannot_make_storage_proofs": True,
        "rpc_urls": ["https://sapphire.oasis.io/"],
        "native_currency": {"name": "ROSE", "symbol": "ROSE", "decimals": 18},
        "info_url": "https://oasisprotocol.org/sapphire",
        "explorers": [
            {
                "name": "Oasis Sapphire Mainnet Explorer",
                "url": "https://explorer.oasis.io/mainnet/sapphire",
                "standard": "EIP3091",
            },
        ],
    },
    23295: {
        "name": "Oasis Sapphire Testnet",
        "chain": "oasis-testnet",
        "icon": "https://votee.oasis.io/rose.png",
        "short_name": "sapphire-testnet",
        "network_id": 0x5aff,
        "hardfork": "london",
        "cannot_make_storage_proofs": True,
        "rpc_urls": ["https://testnet.sapphire.oasis.dev/"],
        "native_currency": {"name": "TEST", "symbol": "TEST", "decimals": 18},
        "info_url": "https://docs.oasis.io/node/testnet/",
        "explorers": [
            {
                "name": "Oasis Sapphire Testnet Explorer",
                "url": "https://explorer.oasis.io/testnet/sapphire",
                "standard": "EIP3091",
            },
        ],
    },
    23293: {
        "name": "Sapphire Localnet",
        "chain": "oasis-localnet",
        "icon": "https://votee.oasis.io/rose.png",
        "short_name": "sapphire-localnet",
        "network_id": 0x5afd,
        "hardfork": "london",
        "cannot_make_storage_proofs": True,
        "rpc_urls": ["http://localhost:8545/"],
        "native_currency": {"name": "ROSE", "symbol": "ROSE", "decimals": 18},
        "info_url": "https://github.com/oasisprotocol/oasis-web3-gateway/pkgs/container/sapphire-localnet",
    },
}

# Default chain if not specified
DEFAULT_CHAIN_ID = 1
