from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from stellar_sdk import Asset, StrKey, scval
from stellar_sdk import xdr as stellar_xdr

from stakehouse.core.errors import BuildError

_ARG_KINDS = {"address", "i128", "u32", "u64", "string", "symbol", "bool", "vec"}


def is_account_address(value: object) -> bool:
    return isinstance(value, str) and StrKey.is_valid_ed25519_public_key(value)


def is_contract_address(value: object) -> bool:
    return isinstance(value, str) and StrKey.is_valid_contract(value)


@dataclass(frozen=True)
class ContractArg:
    """A typed contract argument."""

    kind: str
    value: Any

    def __post_init__(self) -> None:
        if self.kind not in _ARG_KINDS:
            raise BuildError(f"unsupported contract argument type: {self.kind}")

    @classmethod
    def address(cls, value: str) -> "ContractArg":
        return cls("address", value)

    @classmethod
    def i128(cls, value: int) -> "ContractArg":
        return cls("i128", value)

    @classmethod
    def vec(cls, items: list["ContractArg"]) -> "ContractArg":
        return cls("vec", tuple(items))

    def to_scval(self) -> stellar_xdr.SCVal:
        if self.kind == "address":
            if not (is_account_address(self.value) or is_contract_address(self.value)):
                raise BuildError(f"malformed address argument: {self.value!r}")
            return scval.to_address(self.value)
        if self.kind == "vec":
            return scval.to_vec([item.to_scval() for item in self.value])
        try:
            if self.kind == "i128":
                return scval.to_int128(int(self.value))
            if self.kind == "u32":
                return scval.to_uint32(int(self.value))
            if self.kind == "u64":
                return scval.to_uint64(int(self.value))
            if self.kind == "bool":
                return scval.to_bool(bool(self.value))
            if self.kind == "symbol":
                return scval.to_symbol(str(self.value))
            return scval.to_string(str(self.value))
        except (TypeError, ValueError) as exc:
            raise BuildError(f"invalid {self.kind} argument {self.value!r}: {exc}") from exc


@dataclass(frozen=True)
class Payment:
    destination: str
    amount: int  # stroops
    asset: str = "native"

    def validate(self) -> None:
        if not is_account_address(self.destination):
            raise BuildError(f"malformed payment destination: {self.destination!r}")
        if not isinstance(self.amount, int) or self.amount <= 0:
            raise BuildError(f"payment amount must be a positive number of stroops, got {self.amount!r}")
        self.stellar_asset()

    def stellar_asset(self) -> Asset:
        if self.asset.casefold() in {"native", "xlm"}:
            return Asset.native()
        code, _, issuer = self.asset.partition(":")
        if not issuer:
            raise BuildError(f"asset must be 'native' or 'CODE:ISSUER', got {self.asset!r}")
        try:
            return Asset(code, issuer)
        except ValueError as exc:
            raise BuildError(f"invalid asset {self.asset!r}: {exc}") from exc


@dataclass(frozen=True)
class ContractInvocation:
    contract_address: str
    function_name: str
    arguments: tuple[ContractArg, ...] = ()

    def validate(self) -> None:
        if not is_contract_address(self.contract_address):
            raise BuildError(f"malformed contract address: {self.contract_address!r}")
        if not self.function_name:
            raise BuildError("contract function name is empty")
        self.parameters()

    def parameters(self) -> list[stellar_xdr.SCVal]:
        return [arg.to_scval() for arg in self.arguments]


TransactionIntent = Union[Payment, ContractInvocation]
