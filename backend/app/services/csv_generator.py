"""Export CSVs from audit results."""
import csv
import io

from app.models.schemas import AnalysisResult, BatchAuditReport


def generate_discrepancy_csv(result: AnalysisResult) -> str:
    out = io.StringIO()
    writer = csv.writer(out)
    writer.writerow([
        "AWB Number", "Issue", "Billed Amount (INR)", "Correct Amount (INR)",
        "Difference (INR)", "Zone Used", "Chargeable Weight (kg)",
    ])
    for d in result.discrepancies:
        b = d.breakdown
        writer.writerow([
            d.awb_number, d.issue_type,
            f"{d.billed_amount:.2f}", f"{d.correct_amount:.2f}", f"{d.difference:.2f}",
            b.zone if b else "", f"{b.chargeable_weight:.3f}" if b else "",
        ])
    return out.getvalue()


def generate_summary_csv(report: BatchAuditReport) -> str:
    out = io.StringIO()
    writer = csv.writer(out)
    writer.writerow(["Provider", "Audit Mode", "Rows", "Discrepancies", "Total Billed (INR)", "Total Overcharge (INR)"])
    for g in report.groups:
        writer.writerow([
            g.provider, g.mode, g.row_count, len(g.result.discrepancies),
            f"{g.result.total_billed:.2f}", f"{g.result.total_overcharge:.2f}",
        ])
    c = report.combined
    writer.writerow([
        "Total", "", c.total_rows, len(c.discrepancies),
        f"{c.total_billed:.2f}", f"{c.total_overcharge:.2f}",
    ])
    return out.getvalue()
