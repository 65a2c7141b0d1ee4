"""Chain and token constants for payment routing.

Centralizes well-known chain ids, stablecoin addresses and vault tokens.
"""

from payrouter.models.types import is_valid_address

# EVM chain ids by human-readable name
CHAIN_IDS: dict[str, int] = {
    "ethereum": 1,
    "optimism": 10,
    "base": 8453,
    "arbitrum": 42161,
}

CHAIN_NAMES: dict[int, str] = {chain_id: name for name, chain_id in CHAIN_IDS.items()}

# Stablecoins the relay settles in: decimals plus per-chain contract address
TOKENS: dict[str, dict] = {
    "USDC": {
        "decimals": 6,
        "addresses": {
            1: "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
            42161: "0xaf88d065e77c8cC2239327C5EDb3A432268e5831",
            8453: "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
            10: "0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85",
        },
    },
    "USDT": {
        "decimals": 6,
        "addresses": {
            1: "0xdAC17F958D2ee523a2206206994597C13D831ec7",
            42161: "0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9",
            8453: "0xfde4C96c8593536E31F229EA8f37b2ADa2699bb2",
            10: "0x94b008aA00579c1307B0EF2c499aD98a8ce58e58",
        },
    },
    "DAI": {
        "decimals": 18,
        "addresses": {
            1: "0x6B175474E89094C44Da98b954EedeAC495271d0F",
            42161: "0xDA10009cBd5D07dd0CeCc66161FC93D7c9000da1",
            8453: "0x50c5725949A6F0c72E6C4a641F24049A917DB0Cb",
            10: "0xDA10009cBd5D07dd0CeCc66161FC93D7c9000da1",
        },
    },
    "FRAX": {
        "decimals": 18,
        "addresses": {
            1: "0x853d955aCEf822Db058eb8505911ED77F175b99e",
            42161: "0x17FC002b466eEc40DaE837Fc4bE5c67993ddBd6F",
            10: "0x2E3D870790dC77A83DD1d18184Acc7439A53f475",
        },
    },
    "LUSD": {
        "decimals": 18,
        "addresses": {
            1: "0x5f98805A4E8be255a32880FDeC7F6728C6568bA0",
            42161: "0x93b346b6BC2548dA6A1E7d98E9a421B42541425b",
            10: "0xc40F949F8a4e094D1b49a23ea9241D289B7b2819",
        },
    },
    "GHO": {
        "decimals": 18,
        "addresses": {
            1: "0x40D16FC0246aD3160Ccc09B8D0D3A2cD28aE6C2f",
            42161: "0x7dfF72693f6A4149b17e7C6314655f6A9F7c8B33",
        },
    },
}

STABLECOINS = frozenset(TOKENS)

# WETH on Base, the token the restaking router accepts
WETH_BASE = "0x4200000000000000000000000000000000000006"

# Vault share tokens for deposit (compose) routes, keyed by "protocol:UNDERLYING"
VAULT_TOKENS: dict[str, dict[int, str]] = {
    "aave:USDC": {
        1: "0x98C23E9d8f34FEFb1B7BD6a91B7FF122F4e16F5c",
        8453: "0x4e65fE4DbA92790696d040ac24Aa414708F5c0AB",
    },
    "morpho:USDC": {
        8453: "0x7BfA7C4f149E7415b73bdeDfe609237e29CBF34A",
        1: "0xBEEF01735c132Ada46AA9aA4c54623cAA92A64CB",
    },
}

DEFAULT_VAULT_PROTOCOL = "morpho"

# Restaking router deployed on Base (deposits WETH into Renzo, forwards ezETH)
RESTAKING_ROUTER = "0x31549dB00B180d528f77083b130C0A045D0CF117"
RESTAKING_GAS_LIMIT = 350_000

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def _validate_address(name: str, address: str) -> str:
    """Validate and return a contract address.

    Raises:
        ValueError: If the address is invalid
    """
    if not is_valid_address(address):
        raise ValueError(f"Invalid {name} address: {address} (must be 0x + 40 hex chars)")
    return address


for _symbol, _info in TOKENS.items():
    for _address in _info["addresses"].values():
        _validate_address(_symbol, _address)
_validate_address("RESTAKING_ROUTER", RESTAKING_ROUTER)


def chain_id_for(chain: str | None, default: int | None = None) -> int | None:
    """Resolve a chain name (case-insensitive) to its chain id."""
    if not chain:
        return default
    return CHAIN_IDS.get(chain.strip().lower(), default)


def get_token_address(symbol: str, chain_id: int) -> str | None:
    """Look up a token address on a chain. Returns None if unavailable."""
    info = TOKENS.get(symbol.strip().upper())
    if info is None:
        return None
    return info["addresses"].get(chain_id)


def get_token_decimals(symbol: str, default: int = 18) -> int:
    """Decimals for a token symbol, `default` if unknown."""
    info = TOKENS.get(symbol.strip().upper())
    return info["decimals"] if info else default


def get_vault_token_address(protocol: str, underlying: str, chain_id: int) -> str | None:
    """Vault share token for a protocol + underlying on a chain, if known."""
    key = f"{protocol.strip().lower()}:{underlying.strip().upper()}"
    return VAULT_TOKENS.get(key, {}).get(chain_id)
