"""
Report Generation Service - dashboard statistics and monthly chart data
"""
from __future__ import annotations
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from bikeshop.extensions import db
from bikeshop.models.customer import Customer
from bikeshop.models.inspection import Inspection
from bikeshop.models.sales import Sale
from bikeshop.services.dates import parse_date

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


class ReportService:
    """Aggregates sales and inspections for the dashboard and reports pages"""

    @staticmethod
    def dashboard_stats(today: Optional[date] = None) -> Dict:
        """Counters shown on the dashboard cards"""
        today = today or date.today()
        status_counts = dict(
            db.session.query(Inspection.status, db.func.count(Inspection.id))
            .group_by(Inspection.status)
            .all()
        )
        year_start = date(today.year, 1, 1)
        sales_total = (
            db.session.query(db.func.coalesce(db.func.sum(Sale.price), 0))
            .filter(Sale.date >= year_start, Sale.date <= today)
            .scalar()
        )
        return {
            'customer_count': Customer.query.count(),
            'inspection_count': sum(status_counts.values()),
            'completed_inspections': status_counts.get('completed', 0),
            'pending_inspections': status_counts.get('pending', 0),
            'scheduled_inspections': status_counts.get('scheduled', 0),
            'sales_total_year': round(float(sales_total or 0), 2),
            'sales_count': Sale.query.count(),
        }

    @staticmethod
    def monthly_summary(year: int) -> List[Dict]:
        """
        Twelve buckets (Jan..Dec) for ``year``.

        Each bucket holds:
            - inspections: number of inspections dated in the month
            - inspection_revenue: fees + labor of the completed ones
            - sales: sum of sale prices
            - sales_count: number of sales

        Rows whose date cannot be read are skipped.
        """
        buckets = [
            {
                'month': name,
                'month_number': number,
                'inspections': 0,
                'inspection_revenue': Decimal("0.00"),
                'sales': Decimal("0.00"),
                'sales_count': 0,
            }
            for number, name in enumerate(MONTH_NAMES, 1)
        ]

        start, end = date(year, 1, 1), date(year, 12, 31)

        inspections = Inspection.query.filter(Inspection.date >= start, Inspection.date <= end).all()
        for inspection in inspections:
            inspection_date = parse_date(inspection.date)
            if inspection_date is None:
                continue
            bucket = buckets[inspection_date.month - 1]
            bucket['inspections'] += 1
            if inspection.status == 'completed':
                bucket['inspection_revenue'] += inspection.total_value

        sales = Sale.query.filter(Sale.date >= start, Sale.date <= end).all()
        for sale in sales:
            sale_date = parse_date(sale.date)
            if sale_date is None:
                continue
            bucket = buckets[sale_date.month - 1]
            bucket['sales'] += Decimal(sale.price or 0)
            bucket['sales_count'] += 1

        for bucket in buckets:
            bucket['inspection_revenue'] = float(bucket['inspection_revenue'])
            bucket['sales'] = float(bucket['sales'])
        return buckets

    @staticmethod
    def totals(buckets: List[Dict]) -> Dict:
        return {
            'inspections': sum(b['inspections'] for b in buckets),
            'inspection_revenue': round(sum(b['inspection_revenue'] for b in buckets), 2),
            'sales': round(sum(b['sales'] for b in buckets), 2),
            'sales_count': sum(b['sales_count'] for b in buckets),
        }
