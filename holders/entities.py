from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class AccountType(str, Enum):
    """Coarse address categories."""

    EOA = "eoa"
    MULTISIG = "multisig"
    CONTRACT = "contract"


class HolderRecord(BaseModel):
    """
    Entity representing a holder at or above the balance threshold.

    Attributes
    ----------
    address : str
        Checksummed holder address
    balance : int
        Balance in the token's smallest unit
    """
    address: str
    balance: int = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)


class OwnersProbe(BaseModel):
    """
    Outcome of the multisig owners call.

    Attributes
    ----------
    succeeded : bool
        Whether the call returned an owner list
    owners : list[str]
        Owner addresses when the call succeeded
    error : str | None
        Failure description when the call did not succeed
    """
    succeeded: bool
    owners: list[str] = Field(default_factory=list)
    error: str | None = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def success(cls, owners: list[str]) -> "OwnersProbe":
        return cls(succeeded=True, owners=list(owners))

    @classmethod
    def failure(cls, error: Exception) -> "OwnersProbe":
        return cls(succeeded=False, error=f"{type(error).__name__}: {error}")


class ClassificationResult(BaseModel):
    """
    Entity representing the classification of a single address.

    Attributes
    ----------
    account_type : AccountType
        Address category
    owner_count : int | None
        Number of owners, set for multisig wallets only
    """
    account_type: AccountType
    owner_count: int | None = Field(default=None, ge=0)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def eoa(cls) -> "ClassificationResult":
        return cls(account_type=AccountType.EOA)

    @classmethod
    def multisig(cls, owner_count: int) -> "ClassificationResult":
        return cls(account_type=AccountType.MULTISIG, owner_count=owner_count)

    @classmethod
    def contract(cls) -> "ClassificationResult":
        return cls(account_type=AccountType.CONTRACT)

    @property
    def label(self) -> str:
        """
        Human-readable classification label.

        Returns
        -------
        str
            ``EOA``, ``Gnosis Safe (N owners)`` or ``Contract``
        """
        if self.account_type is AccountType.EOA:
            return "EOA"
        if self.account_type is AccountType.MULTISIG:
            return f"Gnosis Safe ({self.owner_count} owners)"
        return "Contract"
