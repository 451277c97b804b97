"""
Excel Report Generation Service
Creates .xlsx files with the monthly sales and inspection figures
"""
from __future__ import annotations
from typing import Dict, List
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side


class ExcelReportService:
    """Service for generating Excel reports"""

    # Color scheme
    HEADER_FILL = PatternFill(start_color="FF7E00", end_color="FF7E00", fill_type="solid")
    HEADER_FONT = Font(bold=True, color="FFFFFF", size=12)
    SUMMARY_FILL = PatternFill(start_color="FDE9D9", end_color="FDE9D9", fill_type="solid")
    MONEY_FORMAT = '€#,##0.00'

    BORDER = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )

    @staticmethod
    def generate_filename(year: int) -> str:
        return f"Monthly_Report_{year}.xlsx"

    @staticmethod
    def create_monthly_report(year: int, buckets: List[Dict], totals: Dict) -> bytes:
        """
        Create Excel workbook from the monthly buckets.

        Args:
            year: report year (title only)
            buckets: ReportService.monthly_summary() output
            totals: ReportService.totals() output

        Returns:
            Excel file as bytes
        """
        wb = Workbook()
        ws = wb.active
        ws.title = "Monthly"

        ws['A1'] = f"SALES & INSPECTIONS {year}"
        ws['A1'].font = Font(bold=True, size=14)
        ws.merge_cells('A1:E1')
        ws['A1'].alignment = Alignment(horizontal='center', vertical='center')
        ws.row_dimensions[1].height = 25

        headers = ["Month", "Inspections", "Inspection Revenue", "Sales", "Sales Revenue"]
        for col, header in enumerate(headers, 1):
            cell = ws.cell(row=3, column=col, value=header)
            cell.font = ExcelReportService.HEADER_FONT
            cell.fill = ExcelReportService.HEADER_FILL
            cell.border = ExcelReportService.BORDER
            cell.alignment = Alignment(horizontal='center', vertical='center')

        row = 4
        for bucket in buckets:
            ws.cell(row=row, column=1, value=bucket['month'])
            ws.cell(row=row, column=2, value=bucket['inspections'])
            ws.cell(row=row, column=3, value=bucket['inspection_revenue']).number_format = ExcelReportService.MONEY_FORMAT
            ws.cell(row=row, column=4, value=bucket['sales_count'])
            ws.cell(row=row, column=5, value=bucket['sales']).number_format = ExcelReportService.MONEY_FORMAT
            for col in range(1, 6):
                ws.cell(row=row, column=col).border = ExcelReportService.BORDER
            row += 1

        # Totals row
        ws.cell(row=row, column=1, value="TOTAL")
        ws.cell(row=row, column=2, value=totals['inspections'])
        ws.cell(row=row, column=3, value=totals['inspection_revenue']).number_format = ExcelReportService.MONEY_FORMAT
        ws.cell(row=row, column=4, value=totals['sales_count'])
        ws.cell(row=row, column=5, value=totals['sales']).number_format = ExcelReportService.MONEY_FORMAT
        for col in range(1, 6):
            cell = ws.cell(row=row, column=col)
            cell.font = Font(bold=True)
            cell.fill = ExcelReportService.SUMMARY_FILL
            cell.border = ExcelReportService.BORDER

        ws.column_dimensions['A'].width = 12
        for letter in ('B', 'C', 'D', 'E'):
            ws.column_dimensions[letter].width = 20

        output = BytesIO()
        wb.save(output)
        output.seek(0)
        return output.getvalue()
