"""PDF rendering of report exports.

The renderer consumes the same ``ReportExport`` bundle the JSON export returns.
Two templates are available: ``dashboard`` (summary, leaderboards and agent
table) and ``summary`` (summary and agent table only).
"""

from __future__ import annotations

import io
from typing import List, Sequence

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from src.analytics.week_windows import format_date
from src.core.errors import BadRequestError
from src.schemas.metrics import AggregatedMetrics, RankedAgent
from src.schemas.reports import ReportExport

TEMPLATES = ("dashboard", "summary")
HEADER_COLOR = colors.HexColor("#1f3a5f")


class ReportPdfRenderer:
    def __init__(self) -> None:
        self.styles = getSampleStyleSheet()
        self.styles.add(
            ParagraphStyle(
                name="ReportTitle",
                parent=self.styles["Heading1"],
                fontSize=20,
                textColor=HEADER_COLOR,
                alignment=TA_CENTER,
                spaceAfter=18,
            )
        )
        self.styles.add(
            ParagraphStyle(
                name="SectionHeading",
                parent=self.styles["Heading2"],
                fontSize=14,
                textColor=HEADER_COLOR,
                spaceBefore=14,
                spaceAfter=8,
            )
        )

    def render(self, export: ReportExport, template: str = "dashboard") -> bytes:
        if template not in TEMPLATES:
            raise BadRequestError(f"Unsupported report template: {template}")

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            topMargin=2 * cm,
            bottomMargin=2 * cm,
            leftMargin=2 * cm,
            rightMargin=2 * cm,
            title="Agent performance report",
        )
        story: List = [
            Paragraph("Agent performance report", self.styles["ReportTitle"]),
            Paragraph(self._period_label(export), self.styles["Normal"]),
            Paragraph(
                f"Generated {export.metadata.generated_at:%Y-%m-%d %H:%M} UTC, "
                f"{export.metadata.agent_count} agents, {export.metadata.record_count} records",
                self.styles["Normal"],
            ),
            Spacer(1, 12),
            Paragraph("Team summary", self.styles["SectionHeading"]),
            self._table(self._summary_rows(export.summary), header=False),
        ]

        if template == "dashboard":
            for title, entries in (
                ("Top by score", export.rankings.score),
                ("Top by deals closed", export.rankings.deals),
                ("Top by showings", export.rankings.showings),
                ("Top by listings acquired", export.rankings.listings),
            ):
                story.append(Paragraph(title, self.styles["SectionHeading"]))
                story.append(self._ranking_table(entries))

        story.append(Paragraph("Agents", self.styles["SectionHeading"]))
        story.append(
            self._table(
                [["Agent", "Records", "Inquiries", "Showings", "Deals", "Listings", "Score"]]
                + [
                    [
                        agent.agent_name,
                        agent.metrics.record_count,
                        agent.metrics.totals.inquiries_received,
                        agent.metrics.totals.showings_completed,
                        agent.metrics.totals.deals_closed,
                        agent.metrics.totals.listings_acquired,
                        agent.score,
                    ]
                    for agent in export.agents
                ]
            )
        )

        doc.build(story)
        return buffer.getvalue()

    @staticmethod
    def _period_label(export: ReportExport) -> str:
        period = export.metadata.period
        if period.start_date and period.end_date:
            return f"Period: {format_date(period.start_date)} to {format_date(period.end_date)}"
        return f"Period: {period.time_window}"

    @staticmethod
    def _summary_rows(summary: AggregatedMetrics) -> List[List[object]]:
        return [
            ["Records", summary.record_count],
            ["Inquiries received", summary.totals.inquiries_received],
            ["Showings completed", summary.totals.showings_completed],
            ["Deals closed", summary.totals.deals_closed],
            ["Listings acquired", summary.totals.listings_acquired],
            ["Inquiries to showings", f"{summary.conversion_rates.inquiries_to_showings}%"],
            ["Showings to deals", f"{summary.conversion_rates.showings_to_deals}%"],
            ["Follow-up rate", f"{summary.follow_up_rate}%"],
        ]

    def _ranking_table(self, entries: Sequence[RankedAgent]) -> Table:
        rows: List[List[object]] = [["#", "Agent", "Value"]]
        rows.extend([entry.rank, entry.agent.agent_name, f"{entry.value:g}"] for entry in entries)
        if len(rows) == 1:
            rows.append(["", "No data", ""])
        return self._table(rows)

    @staticmethod
    def _table(rows: List[List[object]], header: bool = True) -> Table:
        table = Table([[str(cell) for cell in row] for row in rows])
        style = [
            ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]
        if header:
            style.extend(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), HEADER_COLOR),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ]
            )
        table.setStyle(TableStyle(style))
        return table


def render_report_pdf(export: ReportExport, template: str = "dashboard") -> bytes:
    return ReportPdfRenderer().render(export, template)
