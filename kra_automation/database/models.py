from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class CompanyRecord:
    """Represents a row from the company table.

    `kra_pin` and `kra_password` are nullable; a missing value is a valid
    state handled before any portal interaction.
    """

    id: int
    company_name: str
    kra_pin: str | None = None
    kra_password: str | None = None
    kra_status: str | None = None
    kra_last_checked: datetime | None = None

    @property
    def key(self) -> str:
        """Identifier used for extraction history: the PIN, else the name."""
        return self.kra_pin or self.company_name


@dataclass(frozen=True)
class CompanySelection:
    """Which companies one orchestration run covers.

    mode:
        "all"      every company, ascending id
        "selected" only `ids`, ascending id
        "range"    `batch_size` companies starting at `start_index` (worker shard)
    """

    mode: str = "all"
    ids: tuple[int, ...] = ()
    start_index: int = 0
    batch_size: int = 0

    @classmethod
    def everything(cls) -> "CompanySelection":
        return cls(mode="all")

    @classmethod
    def explicit(cls, ids: list[int]) -> "CompanySelection":
        return cls(mode="selected", ids=tuple(ids))

    @classmethod
    def shard(cls, start_index: int, batch_size: int) -> "CompanySelection":
        return cls(mode="range", start_index=start_index, batch_size=batch_size)


@dataclass
class ExtractionHistory:
    """Represents a row from a per-feature extraction table."""

    company_key: str
    company_name: str
    extractions: dict[str, Any] = field(default_factory=dict)
    last_extraction_date: datetime | None = None
