from datetime import date
from decimal import Decimal
from io import BytesIO

from openpyxl import load_workbook

from bikeshop.extensions import db
from bikeshop.models.customer import Customer
from bikeshop.models.inspection import Inspection
from bikeshop.models.sales import Sale
from bikeshop.services.report_service import ReportService


def _seed(app):
    with app.app_context():
        customer = Customer.query.filter_by(name='Test Customer').first()
        bike_id = customer.bikes[0].id
        db.session.add_all([
            Inspection(customer_id=customer.id, bike_id=bike_id, date=date(2024, 3, 5),
                       next_inspection_date=date(2025, 3, 5), status='completed',
                       inspection_value=Decimal('45.00'), labor_cost=Decimal('15.00')),
            Inspection(customer_id=customer.id, bike_id=bike_id, date=date(2024, 3, 20),
                       next_inspection_date=date(2025, 3, 20), status='scheduled',
                       inspection_value=Decimal('99.00')),
            Inspection(customer_id=customer.id, bike_id=bike_id, date=date(2023, 3, 20),
                       next_inspection_date=date(2024, 3, 20), status='completed',
                       inspection_value=Decimal('10.00')),
            Sale(product_name='Trek Marlin 7', price=Decimal('899.90'), date=date(2024, 3, 1)),
            Sale(product_name='Helmet', price=Decimal('49.99'), date=date(2024, 12, 31)),
        ])
        db.session.commit()


def test_monthly_summary_buckets(app):
    _seed(app)
    with app.app_context():
        buckets = ReportService.monthly_summary(2024)

    assert len(buckets) == 12
    assert [b['month_number'] for b in buckets] == list(range(1, 13))

    march = buckets[2]
    assert march['month'] == 'Mar'
    assert march['inspections'] == 2
    assert march['inspection_revenue'] == 60.0
    assert march['sales'] == 899.9
    assert march['sales_count'] == 1

    assert buckets[11]['sales'] == 49.99
    assert buckets[0]['inspections'] == 0


def test_totals(app):
    _seed(app)
    with app.app_context():
        totals = ReportService.totals(ReportService.monthly_summary(2024))
    assert totals == {'inspections': 2, 'inspection_revenue': 60.0, 'sales': 949.89, 'sales_count': 2}


def test_dashboard_stats(app):
    _seed(app)
    with app.app_context():
        stats = ReportService.dashboard_stats(today=date(2024, 12, 31))
    assert stats['customer_count'] == 1
    assert stats['inspection_count'] == 3
    assert stats['completed_inspections'] == 2
    assert stats['scheduled_inspections'] == 1
    assert stats['pending_inspections'] == 0
    assert stats['sales_total_year'] == 949.89
    assert stats['sales_count'] == 2


def test_monthly_report_json(app, logged_in_client):
    _seed(app)
    rv = logged_in_client.get('/reports/monthly?year=2024')
    body = rv.get_json()
    assert body['year'] == 2024
    assert len(body['months']) == 12
    assert body['totals']['sales_count'] == 2


def test_monthly_report_csv(app, logged_in_client):
    _seed(app)
    rv = logged_in_client.get('/reports/monthly?year=2024&format=csv')
    assert rv.mimetype == 'text/csv'
    assert 'monthly_report_2024.csv' in rv.headers['Content-Disposition']
    lines = rv.data.decode().strip().splitlines()
    assert lines[0].startswith('Month,Inspections')
    assert len(lines) == 14
    assert lines[-1].startswith('TOTAL')


def test_monthly_report_excel(app, logged_in_client):
    _seed(app)
    rv = logged_in_client.get('/reports/monthly/export?year=2024')
    assert rv.status_code == 200
    assert 'Monthly_Report_2024.xlsx' in rv.headers['Content-Disposition']

    ws = load_workbook(BytesIO(rv.data)).active
    assert ws['A1'].value == 'SALES & INSPECTIONS 2024'
    assert ws['A6'].value == 'Mar'
    assert ws['B6'].value == 2
    assert ws['A16'].value == 'TOTAL'
