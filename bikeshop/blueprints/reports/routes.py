from __future__ import annotations

from datetime import date
from io import StringIO
import csv

from flask import request, Response, jsonify
from flask_login import login_required

from bikeshop.services.authz import roles_required
from bikeshop.services.excel_service import ExcelReportService
from bikeshop.services.report_service import ReportService

from . import reports_bp


def _report_year() -> int:
    year = request.args.get("year", date.today().year, type=int)
    if year is None or not 1900 <= year <= 9999:
        year = date.today().year
    return year


@reports_bp.route("/monthly")
@login_required
@roles_required("STAFF")
def monthly_report():
    """Monthly inspections and sales for one year with optional CSV export"""
    year = _report_year()
    fmt = request.args.get("format", "json")

    buckets = ReportService.monthly_summary(year)
    totals = ReportService.totals(buckets)

    # CSV export
    if fmt == "csv":
        si = StringIO()
        cw = csv.writer(si)
        cw.writerow(["Month", "Inspections", "Inspection Revenue", "Sales", "Sales Revenue"])
        for b in buckets:
            cw.writerow([b["month"], b["inspections"], b["inspection_revenue"], b["sales_count"], b["sales"]])
        cw.writerow(["TOTAL", totals["inspections"], totals["inspection_revenue"], totals["sales_count"], totals["sales"]])
        output = si.getvalue()
        return Response(output, mimetype="text/csv", headers={
            "Content-Disposition": f"attachment; filename=monthly_report_{year}.csv"
        })

    return jsonify({"year": year, "months": buckets, "totals": totals})


@reports_bp.route("/monthly/export")
@login_required
@roles_required("STAFF")
def monthly_export():
    """Monthly report as an Excel workbook"""
    year = _report_year()
    buckets = ReportService.monthly_summary(year)
    content = ExcelReportService.create_monthly_report(year, buckets, ReportService.totals(buckets))
    return Response(
        content,
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={ExcelReportService.generate_filename(year)}"},
    )
