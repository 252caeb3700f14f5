"""Run summaries for reconciliation passes."""

from __future__ import annotations

from dataclasses import dataclass, field

from reconciler.utils.dates import format_timestamp, now_in_tz


@dataclass(slots=True)
class RowError:
    row_id: str
    message: str


@dataclass(slots=True)
class PassSummary:
    name: str
    changed_label: str = "changed"
    dry_run: bool = False
    processed: int = 0
    changed: int = 0
    skipped: int = 0
    flagged: int = 0
    errors: list[RowError] = field(default_factory=list)

    @property
    def errored(self) -> int:
        return len(self.errors)

    def record_error(self, row_id: str, exc: BaseException) -> None:
        message = str(exc) or exc.__class__.__name__
        self.errors.append(RowError(row_id=row_id, message=message))

    def as_dict(self) -> dict[str, int]:
        return {
            "processed": self.processed,
            self.changed_label: self.changed,
            "skipped": self.skipped,
            "flagged": self.flagged,
            "errored": self.errored,
        }

    def render(self) -> str:
        title = f"{self.name} summary ({format_timestamp(now_in_tz())})"
        if self.dry_run:
            title += " [dry run]"
        lines = [title]
        lines.extend(f"  {key:<14} {value}" for key, value in self.as_dict().items())
        for error in self.errors[:20]:
            lines.append(f"  ! {error.row_id}: {error.message}")
        if self.errored > 20:
            lines.append(f"  ... and {self.errored - 20} more errors")
        return "\n".join(lines)
