import os
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings using Pydantic Settings.

    Attributes
    ----------
    sim_api_key : str
        Dune Sim API key, sent as ``X-Sim-Api-Key``
    sim_api_url : str
        Base URL of the Sim API
    infura_url : str | None
        Infura JSON-RPC endpoint (optional)
    alchemy_url : str | None
        Alchemy JSON-RPC endpoint (optional)
    chain_id : int
        Chain identifier used in the token-holders query
    token_address : str
        Token contract address
    threshold : str
        Minimum holder balance in whole tokens (inclusive)
    page_limit : int
        Holders requested per page
    max_attempts : int
        Attempts per page request before giving up
    base_delay : float
        Backoff base in seconds
    page_delay : float
        Pause between page requests in seconds
    classify_delay : float
        Pause between address classifications in seconds
    request_timeout : float
        Total timeout of a single Sim API request in seconds
    rpc_timeout : float
        Timeout of a single JSON-RPC request in seconds
    max_records : int | None
        Stop paginating once this many holders qualify (optional)
    output_path : str
        Where the command-line runner writes the report
    """

    sim_api_key: str
    sim_api_url: str = "https://api.sim.dune.com"

    infura_url: str | None = None
    alchemy_url: str | None = None

    chain_id: int = 1
    token_address: str = "0xc00e94cb662c3520282e6f5717214004a7f26888"
    threshold: str = "25000"

    page_limit: int = Field(default=500, gt=0)
    max_attempts: int = Field(default=3, gt=0)
    base_delay: float = Field(default=1.0, ge=0)
    page_delay: float = Field(default=0.5, ge=0)
    classify_delay: float = Field(default=0.2, ge=0)
    request_timeout: float = Field(default=30.0, gt=0)
    rpc_timeout: float = Field(default=30.0, gt=0)
    max_records: int | None = Field(default=None, gt=0)

    output_path: str = "comp_holders_with_type.json"

    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    @field_validator("sim_api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Missing SIM_API_KEY")
        return v

    @field_validator("token_address")
    @classmethod
    def validate_token_address(cls, v: str) -> str:
        if not v.startswith('0x') or len(v) != 42:
            raise ValueError('Invalid token address format')
        return v.lower()

    @model_validator(mode="after")
    def require_rpc_url(self) -> "Settings":
        if not self.rpc_urls:
            raise ValueError("Set INFURA_URL or ALCHEMY_URL")
        return self

    @property
    def rpc_urls(self) -> dict[str, str]:
        """
        Configured RPC endpoints in fallback order.

        Returns
        -------
        dict[str, str]
            Provider name to endpoint URL
        """
        urls = {"infura": self.infura_url, "alchemy": self.alchemy_url}
        return {name: url for name, url in urls.items() if url}

    def get_holders_url(self) -> str:
        """
        Get token-holders endpoint URL for the configured chain and token.

        Returns
        -------
        str
            Full endpoint URL without query string
        """
        base_url = self.sim_api_url.rstrip("/")
        return f"{base_url}/v1/evm/token-holders/{self.chain_id}/{self.token_address}"
