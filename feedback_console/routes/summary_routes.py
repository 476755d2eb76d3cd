import logging

from flask import Blueprint, current_app, request, send_file

from feedback_console.report_generator import generate_feedback_report, report_filename
from feedback_console.services.export_service import export_filename, export_summary_excel
from feedback_console.services.summary import build_summary_query, fetch_summary
from .common import console_session, success, truthy

logger = logging.getLogger(__name__)

summary_bp = Blueprint('summary', __name__, url_prefix='/summary')

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


def _query_from_args():
    args = request.args
    return build_summary_query(
        academic_year=args.get('academicYear', '').strip(),
        year=args.get('year', '').strip(),
        semester=args.get('semester', '').strip(),
        section=args.get('section', ''),
        branch=args.get('branch', '').strip(),
        is_bsh=truthy(args.get('isBSH')),
    )


def _fetch_report():
    console = console_session()
    query = _query_from_args()
    return fetch_summary(console.gateway, query, current_app.config['SCORE_POLICY'])


@summary_bp.route('', methods=['GET'])
def summary():
    report = _fetch_report()
    return success(**report.to_dict())


@summary_bp.route('/report', methods=['GET'])
def summary_report():
    report = _fetch_report()
    pdf = generate_feedback_report(report, include_chart=truthy(request.args.get('chart')))
    return send_file(
        pdf,
        mimetype='application/pdf',
        as_attachment=truthy(request.args.get('download')),
        download_name=report_filename(report.query),
    )


@summary_bp.route('/export', methods=['GET'])
def summary_export():
    report = _fetch_report()
    workbook = export_summary_excel(report)
    return send_file(
        workbook,
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=export_filename(report.query),
    )


@summary_bp.route('/comments', methods=['GET'])
def summary_comments():
    """Raw comment pairs from individual responses."""
    console = console_session()
    filters = {k: v for k, v in request.args.items() if v}
    comments = console.gateway.get_comments(**filters)
    return success(
        comments=[c.to_display() for c in comments],
        count=len(comments),
    )
