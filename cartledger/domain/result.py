# cartledger/domain/result.py
"""
Explicit outcome values for the cart core.

Services return ``Ok(value)`` or ``Err(CartError)`` instead of raising, so the
routers (and tests) branch on the error kind and the checkout engine can make
rollback an ordinary step of its algorithm.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    INVALID_QUANTITY = "InvalidQuantity"
    UNKNOWN_PRODUCT = "UnknownProduct"
    EMPTY_CART = "EmptyCart"
    DANGLING_PRODUCT_REFERENCE = "DanglingProductReference"
    STORAGE_FAILURE = "StorageFailure"


@dataclass(frozen=True)
class CartError:
    kind: ErrorKind
    message: str

    def as_detail(self) -> dict:
        return {"kind": self.kind.value, "message": self.message}


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    error: CartError

    @property
    def ok(self) -> bool:
        return False

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind


Result = Union[Ok[T], Err]


def err(kind: ErrorKind, message: str) -> Err:
    return Err(CartError(kind=kind, message=message))
