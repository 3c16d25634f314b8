from decimal import Decimal, InvalidOperation
from pydantic import BaseModel, ConfigDict, Field, field_validator
from web3 import AsyncWeb3


class SimHolder(BaseModel):
    """
    Raw holder entry from the Sim token-holders endpoint.

    Attributes
    ----------
    wallet_address : str
        Holder address as returned by the API
    balance : int
        Balance in the token's smallest unit (sent as a decimal string)
    """
    wallet_address: str
    balance: int = Field(..., ge=0)

    @field_validator('wallet_address')
    @classmethod
    def validate_address(cls, v: str) -> str:
        if not v.startswith('0x') or len(v) != 42:
            raise ValueError('Invalid holder address format')
        return AsyncWeb3.to_checksum_address(v)

    @field_validator('balance', mode='before')
    @classmethod
    def parse_balance(cls, v: object) -> int:
        # Floats would already have lost precision on large balances.
        if isinstance(v, bool) or not isinstance(v, (str, int)):
            raise ValueError('Balance must be an integer or a decimal string')
        if isinstance(v, str):
            if not (v.isascii() and v.isdigit()):
                raise ValueError('Balance must be a non-negative integer string')
            return int(v)
        return v

    model_config = ConfigDict(extra="ignore")


class SimHoldersPage(BaseModel):
    """
    Single page of the Sim token-holders endpoint.

    Attributes
    ----------
    holders : list[SimHolder]
        Holders on this page
    next_offset : str | None
        Cursor of the next page, absent on the last page
    """
    holders: list[SimHolder]
    next_offset: str | None = None

    model_config = ConfigDict(extra="ignore")


class GetHolderReportRequest(BaseModel):
    """
    Request schema for building a holder report.

    Attributes
    ----------
    threshold : str | None
        Minimum balance in whole tokens (optional, defaults to configured value)
    max_records : int | None
        Stop after this many qualifying holders (optional)
    """
    threshold: str | None = Field(
        default=None,
        description="Minimum balance in whole tokens, inclusive"
    )
    max_records: int | None = Field(
        default=None,
        gt=0,
        description="Stop paginating once this many holders qualify"
    )

    @field_validator('threshold')
    @classmethod
    def validate_threshold(cls, v: str | None) -> str | None:
        if v is None:
            return v
        try:
            value = Decimal(v)
        except InvalidOperation:
            raise ValueError('Threshold must be a decimal number')
        if not value.is_finite() or value < 0:
            raise ValueError('Threshold must be a non-negative decimal number')
        return v

    model_config = ConfigDict(from_attributes=True)


class ReportEntryResponse(BaseModel):
    """
    Response schema for a single holder.

    Attributes
    ----------
    address : str
        Checksummed holder address
    balance : str
        Human-readable balance
    type : str
        Classification label
    account_type : str
        Classification category (eoa, multisig, contract)
    owner_count : int | None
        Number of owners for multisig wallets
    """
    address: str
    balance: str
    type: str
    account_type: str
    owner_count: int | None = None

    model_config = ConfigDict(from_attributes=True)


class HolderReportResponse(BaseModel):
    """
    Response schema for a holder report.

    Attributes
    ----------
    token_address : str
        Token contract address
    chain_id : int
        Chain identifier
    decimals : int
        Token decimals
    threshold : str
        Human-readable threshold used for filtering
    total_holders : int
        Number of holders in the report
    holders : list[ReportEntryResponse]
        Holders in retrieval order
    """
    token_address: str
    chain_id: int
    decimals: int
    threshold: str
    total_holders: int
    holders: list[ReportEntryResponse]

    model_config = ConfigDict(from_attributes=True)
