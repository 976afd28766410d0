"""Trusted validators for harness methods, keyed by method name."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from . import constants

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MethodFeatures:
    """Constructs found in the body of a submitted method."""

    found: bool = False
    has_loop: bool = False
    has_accumulation: bool = False
    has_return: bool = False

    @property
    def looks_correct(self) -> bool:
        return self.found and self.has_loop and self.has_accumulation and self.has_return


class MethodValidator(ABC):
    """Computes the expected answer for one harness method.

    The submitted code is never run. When its body does not show the
    constructs a correct solution needs, the sentinel wrong answer is
    returned instead of the trusted result.
    """

    method_name: str = ""

    @abstractmethod
    def compute(self, data: list[int]) -> int: ...

    def validate(self, features: MethodFeatures, data: list[int]) -> int:
        if not features.looks_correct:
            logger.info(
                "%s does not look like a solution (%s), answering %d",
                self.method_name,
                features,
                constants.SENTINEL_WRONG_ANSWER,
            )
            return constants.SENTINEL_WRONG_ANSWER
        return self.compute(data)


class TotalSalesValidator(MethodValidator):
    method_name = "calculateTotalSales"

    def compute(self, data: list[int]) -> int:
        return sum(data)


VALIDATORS: dict[str, MethodValidator] = {
    v.method_name: v for v in (TotalSalesValidator(),)
}


def get_validator(method_name: str) -> MethodValidator | None:
    return VALIDATORS.get(method_name)
