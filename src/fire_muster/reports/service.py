from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional, Sequence

from markupsafe import escape

from ..attendance.model import AttendanceRecord
from ..common.datetime_utils import elapsed, fmt_date, fmt_time, now_local
from ..core.constants import STATUS_ICONS, STATUS_LABELS
from ..core.enums import AttendanceStatus
from ..drills.model import DrillSession
from ..employees.model import Employee
from ..marshals.model import Marshal
from .stats import HeadcountStats, calc_stats

RULE_WIDTH = 44

SUMMARY_ORDER = (
    AttendanceStatus.PRESENT,
    AttendanceStatus.MISSING,
    AttendanceStatus.EXCUSED,
    AttendanceStatus.UNACCOUNTED,
)

HTML_TEMPLATE = """<html><head><title>Fire Drill Report</title>
<style>body{{font-family:monospace;padding:32px;font-size:13px;line-height:1.6;white-space:pre;color:#1e293b}}
@media print{{body{{padding:16px;font-size:11px}}}}</style>
</head><body>{body}</body></html>"""


@dataclass(frozen=True)
class DrillReport:
    lines: list[str]
    stats: HeadcountStats
    missing: list[dict]

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    @property
    def html(self) -> str:
        return HTML_TEMPLATE.format(body=escape(self.text))


def _section(title: str) -> str:
    return f"── {title} {'─' * max(0, RULE_WIDTH - len(title))}"


class DrillReportService:
    """Printable headcount report.

    Works only on data the caller already holds (session, roster, attendance map);
    it never reads the store.
    """

    def build(
        self,
        *,
        session: Optional[DrillSession],
        employees: Sequence[Employee],
        marshals: Sequence[Marshal],
        attendance: Mapping[int, AttendanceRecord],
        now: Optional[datetime] = None,
    ) -> DrillReport:
        now = now or now_local()
        overall = calc_stats(employees, attendance)

        lines = [
            "FIRE EVACUATION DRILL – HEADCOUNT REPORT",
            "==========================================",
            f"Date:          {fmt_date(now)}",
            f"Report time:   {fmt_time(now)}",
            f"Drill started: {fmt_time(session.started_at if session else None)}  by  {(session.started_by if session else None) or '—'}",
        ]
        if session and session.ended_at:
            lines.append(f"Drill ended:   {fmt_time(session.ended_at)}  by  {session.ended_by or '—'}")
        else:
            lines.append("Status:        ONGOING")
        lines += [
            f"Duration:      {elapsed(session.started_at if session else None, session.ended_at if session else None, now=now)}",
            "",
            _section("OVERALL SUMMARY"),
            f"  Total staff    : {overall.total}",
            *(f"  {STATUS_ICONS[s]} {STATUS_LABELS[s]:<13}: {overall.count(s)}" for s in SUMMARY_ORDER),
            "",
        ]

        for marshal in marshals:
            party = [e for e in employees if e.marshal_id == marshal.marshal_id]
            if not party:
                continue
            s = calc_stats(party, attendance)
            lines.append(_section(marshal.name.upper()))
            lines.append(
                f"  Present: {s.present}  Missing: {s.missing}  Off-site: {s.excused}  Unaccounted: {s.unaccounted}"
            )
            for e in party:
                r = attendance.get(e.employee_id)
                status = r.status if r else AttendanceStatus.UNACCOUNTED
                note = f"  [{r.note}]" if r and r.note else ""
                by = f"  ({r.marshal_name})" if r and r.marshal_name else ""
                lines.append(f"  {STATUS_ICONS[status]} {e.name:<22} {(e.dept or ''):<16}{note}{by}".rstrip())
            lines.append("")

        known_ids = {m.marshal_id for m in marshals}
        unassigned = [e for e in employees if e.marshal_id is None or e.marshal_id not in known_ids]
        if unassigned:
            lines.append(_section("UNASSIGNED"))
            for e in unassigned:
                r = attendance.get(e.employee_id)
                status = r.status if r else AttendanceStatus.UNACCOUNTED
                lines.append(f"  {STATUS_ICONS[status]} {e.name:<22} {e.dept or ''}".rstrip())
            lines.append("")

        names = {m.marshal_id: m.name for m in marshals}
        missing = []
        for e in employees:
            r = attendance.get(e.employee_id)
            if not r or r.status != AttendanceStatus.MISSING:
                continue
            missing.append(
                {
                    "employee_id": e.employee_id,
                    "name": e.name,
                    "dept": e.dept,
                    "marshal": names.get(e.marshal_id, "Unassigned"),
                    "note": r.note,
                }
            )

        if missing:
            lines.append("⚠  MISSING PERSONS – ACTION REQUIRED ─────────")
            for m in missing:
                note = f"  |  Note: {m['note']}" if m["note"] else ""
                lines.append(f"  ✗ {m['name']}  |  {m['dept'] or '—'}  |  Marshal: {m['marshal']}{note}")

        return DrillReport(lines=lines, stats=overall, missing=missing)
