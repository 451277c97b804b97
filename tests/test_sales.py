from bikeshop.extensions import db
from bikeshop.models.customer import Customer
from bikeshop.models.inspection import Inspection
from bikeshop.models.sales import Sale
from bikeshop.services.sales_linker import SaleLinkError


def _customer_id(app):
    with app.app_context():
        return Customer.query.filter_by(name='Test Customer').first().id


def test_record_bike_sale(app, logged_in_client):
    rv = logged_in_client.post('/sales/', json={
        'customer_id': _customer_id(app),
        'product_name': 'Trek Marlin 7',
        'bike_model': 'Trek Marlin',
        'price': '899.90',
        'date': '2024-01-01',
    })
    assert rv.status_code == 201
    body = rv.get_json()
    assert body['inspection']['next_inspection_date'] == '2025-01-01'
    assert body['inspection']['status'] == 'scheduled'
    assert 'inspection scheduled for 2025-01-01' in body['message']
    assert body['sale']['price'] == 899.9


def test_record_sale_with_new_customer(app, logged_in_client):
    rv = logged_in_client.post('/sales/', json={
        'product_name': 'Cube Attention',
        'bike_model': 'Cube Attention',
        'price': 1299,
        'new_customer': {'name': 'Ana Ferreira', 'phone': '917654321'},
    })
    assert rv.status_code == 201
    customer = rv.get_json()['customer']
    assert customer['name'] == 'Ana Ferreira'

    with app.app_context():
        created = db.session.get(Customer, customer['id'])
        assert created.created_by_user.username == 'admin'


def test_sale_validation(logged_in_client):
    rv = logged_in_client.post('/sales/', json={'product_name': '', 'price': '-5'})
    assert rv.status_code == 400
    errors = rv.get_json()['errors']
    assert 'product_name' in errors
    assert 'price' in errors


def test_bike_sale_needs_customer(logged_in_client):
    rv = logged_in_client.post('/sales/', json={'product_name': 'Bike', 'bike_model': 'Trek', 'price': '100'})
    assert rv.status_code == 400
    assert 'customer_id' in rv.get_json()['errors']


def test_new_customer_errors_are_prefixed(logged_in_client):
    rv = logged_in_client.post('/sales/', json={
        'product_name': 'Bike', 'bike_model': 'Trek', 'price': '100',
        'new_customer': {'name': '', 'email': 'bad'},
    })
    errors = rv.get_json()['errors']
    assert 'new_customer.name' in errors
    assert 'new_customer.email' in errors


def test_unknown_customer(logged_in_client):
    rv = logged_in_client.post('/sales/', json={'customer_id': 9999, 'product_name': 'Bell', 'price': '5'})
    assert rv.status_code == 400
    assert 'customer_id' in rv.get_json()['errors']


def test_partial_failure_reports_steps(app, logged_in_client, monkeypatch):
    def fail(*args, **kwargs):
        raise SaleLinkError('bike', ['customer'], 'Failed to record sale at step bike')

    monkeypatch.setattr('bikeshop.blueprints.sales.routes.record_sale', fail)
    rv = logged_in_client.post('/sales/', json={
        'product_name': 'Bike', 'bike_model': 'Trek', 'price': '100',
        'new_customer': {'name': 'Half Done'},
    })
    assert rv.status_code == 500
    body = rv.get_json()
    assert body['step'] == 'bike'
    assert body['completed_steps'] == ['customer']


def test_list_and_detail(app, logged_in_client):
    logged_in_client.post('/sales/', json={'product_name': 'Helmet', 'price': '49.99', 'date': '2024-02-01'})
    logged_in_client.post('/sales/', json={'product_name': 'Lights', 'price': '19.99', 'date': '2024-03-01'})

    rv = logged_in_client.get('/sales/')
    sales = rv.get_json()['sales']
    assert [s['product_name'] for s in sales] == ['Lights', 'Helmet']
    assert sales[0]['customer_name'] == 'Walk-in'

    rv = logged_in_client.get('/sales/?start=2024-02-15')
    assert [s['product_name'] for s in rv.get_json()['sales']] == ['Lights']

    rv = logged_in_client.get(f"/sales/{sales[0]['id']}")
    assert rv.get_json()['sale']['product_name'] == 'Lights'
    assert logged_in_client.get('/sales/9999').status_code == 404

    with app.app_context():
        assert Sale.query.count() == 2
        assert Inspection.query.count() == 0


def test_sale_date_with_extra_digit_is_rejected(app, logged_in_client):
    rv = logged_in_client.post('/sales/', json={
        'customer_id': _customer_id(app),
        'product_name': 'Trek Marlin 7',
        'bike_model': 'Trek Marlin',
        'price': '899.90',
        'date': '2024-01-015',
    })
    assert rv.status_code == 400
    assert 'date' in rv.get_json()['errors']
    with app.app_context():
        assert Sale.query.count() == 0
        assert Inspection.query.count() == 0
