"""Code groups: related HCPCS codes that share one fee-schedule file layout."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CodeGroup:
    name: str
    codes: tuple[str, ...]
    filename_template: str = "{year}-all-{codes}-national_payment_amount.csv"

    def filename_for(self, year: str) -> str:
        return self.filename_template.format(year=year, codes="-".join(self.codes))

    def path_for(self, data_dir: Path, year: str) -> Path:
        return data_dir / self.name / self.filename_for(year)


DEFAULT_CODE_GROUPS: tuple[CodeGroup, ...] = (
    CodeGroup("618", ("61885", "61888", "61889", "61891", "61892")),
    CodeGroup("645", ("64568", "64569", "64570")),
    CodeGroup("959", ("95970", "95976", "95977", "95983")),
)

# Codes tracked in the Addendum B payment files. The trailing "A" codes have no
# fee-schedule group and only ever appear on the payment side.
TARGET_PAYMENT_CODES: frozenset[str] = frozenset(
    {
        "61885", "61888",
        "64568", "64569", "64570",
        "95970", "95976", "95977", "95983",
        "0001A", "0002A", "0003A", "0004A",
    }
)


def get_group(name: str, groups: tuple[CodeGroup, ...] = DEFAULT_CODE_GROUPS) -> CodeGroup | None:
    for group in groups:
        if group.name == name:
            return group
    return None


__all__ = ["CodeGroup", "DEFAULT_CODE_GROUPS", "TARGET_PAYMENT_CODES", "get_group"]
