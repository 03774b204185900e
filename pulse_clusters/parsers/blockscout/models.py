from datetime import UTC, datetime

from pydantic import AliasChoices, BaseModel, Field, field_validator


class BlockscoutAddress(BaseModel):
    hash: str = ""

    model_config = {"extra": "ignore"}


class BlockscoutTokenInfo(BaseModel):
    # Older explorer builds return "address", newer ones "address_hash"
    address: str = Field("", validation_alias=AliasChoices("address", "address_hash"))
    symbol: str | None = None
    decimals: str | None = None

    model_config = {"extra": "ignore"}


class BlockscoutTotal(BaseModel):
    value: str | None = None
    decimals: str | None = None

    model_config = {"extra": "ignore"}

    @field_validator("value", "decimals", mode="before")
    @classmethod
    def _numbers_as_str(cls, v: object) -> object:
        if isinstance(v, int | float):
            return str(v)
        return v


class BlockscoutHolder(BaseModel):
    address: BlockscoutAddress
    value: str

    model_config = {"extra": "ignore"}

    @field_validator("value", mode="before")
    @classmethod
    def _value_as_str(cls, v: object) -> object:
        if isinstance(v, int | float):
            return str(v)
        return v


class BlockscoutHoldersPage(BaseModel):
    items: list[BlockscoutHolder] | None = None

    model_config = {"extra": "ignore"}


class TransferRecord(BaseModel):
    """One ERC-20 transfer item from /addresses/{address}/token-transfers."""

    sender: BlockscoutAddress = Field(validation_alias=AliasChoices("from", "sender"))
    receiver: BlockscoutAddress = Field(validation_alias=AliasChoices("to", "receiver"))
    total: BlockscoutTotal | None = None
    token: BlockscoutTokenInfo | None = None
    timestamp: str | None = None
    transaction_hash: str = Field(
        "", validation_alias=AliasChoices("transaction_hash", "tx_hash")
    )
    block_number: int | None = None
    log_index: int | None = None

    model_config = {"extra": "ignore"}

    @property
    def from_address(self) -> str:
        return self.sender.hash.lower()

    @property
    def to_address(self) -> str:
        return self.receiver.hash.lower()

    @property
    def token_address(self) -> str:
        return self.token.address.lower() if self.token else ""

    @property
    def amount(self) -> float | None:
        """Raw transferred value, None when missing or not numeric."""
        if self.total is None or self.total.value is None:
            return None
        try:
            return float(self.total.value)
        except ValueError:
            return None

    @property
    def timestamp_dt(self) -> datetime | None:
        return parse_timestamp(self.timestamp)


class BlockscoutTransfersPage(BaseModel):
    items: list[TransferRecord] | None = None

    model_config = {"extra": "ignore"}


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an explorer ISO 8601 timestamp into an aware UTC datetime."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)
