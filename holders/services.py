import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar
import aiohttp
from web3 import AsyncWeb3
from web3.exceptions import Web3Exception
from core.exceptions import RPCException
from holders.entities import ClassificationResult, OwnersProbe


T = TypeVar("T")

ERC20_ABI = [
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"internalType": "uint8", "name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function"
    }
]

# Gnosis Safe owner enumeration
SAFE_ABI = [
    {
        "inputs": [],
        "name": "getOwners",
        "outputs": [{"internalType": "address[]", "name": "", "type": "address[]"}],
        "stateMutability": "view",
        "type": "function"
    }
]

# Failures that move a query on to the next RPC client
RPC_ERRORS = (
    Web3Exception,
    aiohttp.ClientError,
    asyncio.TimeoutError,
    OSError,
)


class ChainService:
    """
    Service for on-chain queries and address classification.

    Parameters
    ----------
    web3_clients : dict[str, AsyncWeb3]
        Web3 clients keyed by provider name, in fallback order
    logger : logging.Logger
        Logger instance
    """

    def __init__(
        self,
        web3_clients: dict[str, AsyncWeb3],
        logger: logging.Logger
    ):
        if not web3_clients:
            raise ValueError("At least one Web3 client is required")
        self.web3_clients = web3_clients
        self.logger = logger

    def _get_client(self) -> AsyncWeb3:
        """
        Get the primary Web3 client.

        Returns
        -------
        AsyncWeb3
            First configured client
        """
        return next(iter(self.web3_clients.values()))

    async def _with_fallback(
        self,
        description: str,
        query: Callable[[AsyncWeb3], Awaitable[T]]
    ) -> T:
        """
        Run a query on each client in turn until one succeeds.

        Parameters
        ----------
        description : str
            Query description for logs and errors
        query : Callable[[AsyncWeb3], Awaitable[T]]
            Query to run against a client

        Returns
        -------
        T
            Result of the first successful client

        Raises
        ------
        RPCException
            If every client fails
        """
        errors = []
        for name, web3 in self.web3_clients.items():
            try:
                return await query(web3)
            except RPC_ERRORS as e:
                self.logger.warning(f"{description} failed on {name}: {e}")
                errors.append(f"{name}: {e}")

        raise RPCException(f"{description} failed on all providers ({'; '.join(errors)})")

    async def get_decimals(self, token_address: str) -> int:
        """
        Get ERC-20 decimals of a token.

        Parameters
        ----------
        token_address : str
            Token contract address

        Returns
        -------
        int
            Token decimals
        """
        checksum_address = AsyncWeb3.to_checksum_address(token_address)

        async def query(web3: AsyncWeb3) -> int:
            contract = web3.eth.contract(address=checksum_address, abi=ERC20_ABI)
            return await contract.functions.decimals().call()

        decimals = await self._with_fallback(f"decimals() on {checksum_address}", query)
        self.logger.info(f"Token {checksum_address} has {decimals} decimals")
        return int(decimals)

    async def get_code(self, address: str) -> bytes:
        """
        Get deployed bytecode at address.

        Parameters
        ----------
        address : str
            Chain address

        Returns
        -------
        bytes
            Bytecode, empty for externally-owned accounts
        """
        checksum_address = AsyncWeb3.to_checksum_address(address)

        async def query(web3: AsyncWeb3) -> bytes:
            return await web3.eth.get_code(checksum_address)

        return bytes(await self._with_fallback(f"get_code({checksum_address})", query))

    async def probe_owners(self, address: str) -> OwnersProbe:
        """
        Call ``getOwners()`` on an address.

        Parameters
        ----------
        address : str
            Contract address

        Returns
        -------
        OwnersProbe
            Owner list on success, the failure otherwise. Any error
            raised by the call is captured in the result.
        """
        web3 = self._get_client()
        checksum_address = AsyncWeb3.to_checksum_address(address)

        try:
            safe = web3.eth.contract(address=checksum_address, abi=SAFE_ABI)
            owners: Any = await safe.functions.getOwners().call()
        except Exception as e:
            return OwnersProbe.failure(e)

        if not isinstance(owners, (list, tuple)):
            return OwnersProbe.failure(
                TypeError(f"getOwners() returned {type(owners).__name__}")
            )
        return OwnersProbe.success([str(owner) for owner in owners])

    async def classify_address(self, address: str) -> ClassificationResult:
        """
        Classify an address as EOA, multisig wallet or generic contract.

        Parameters
        ----------
        address : str
            Chain address

        Returns
        -------
        ClassificationResult
            Classification of the address

        Raises
        ------
        RPCException
            If the bytecode cannot be fetched from any client
        """
        code = await self.get_code(address)
        if not code:
            self.logger.debug(f"{address}: no code, EOA")
            return ClassificationResult.eoa()

        probe = await self.probe_owners(address)
        if probe.succeeded:
            self.logger.debug(f"{address}: multisig with {len(probe.owners)} owners")
            return ClassificationResult.multisig(len(probe.owners))

        self.logger.debug(f"{address}: contract ({probe.error})")
        return ClassificationResult.contract()
