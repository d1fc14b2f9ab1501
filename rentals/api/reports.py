# rentals/api/reports.py
from flask import Response, request
from flask_login import login_required

from rentals.reports import build_report, report_csv
from rentals.schemas import ReportQuery, parse_payload

from . import api_bp, ok


@api_bp.get("/reports")
@login_required
def report():
    query = parse_payload(ReportQuery, request.args.to_dict())
    data = build_report(query.type, query.start_date, query.end_date)

    if query.format == "csv":
        return Response(
            report_csv(query.type, data),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={query.type}-report.csv"},
        )
    return ok(data)
