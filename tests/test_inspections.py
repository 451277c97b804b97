from datetime import date, timedelta

import pytest

from bikeshop.extensions import db
from bikeshop.models.bike import Bike
from bikeshop.models.customer import Customer
from bikeshop.models.inspection import Inspection


def _ids(app):
    with app.app_context():
        customer = Customer.query.filter_by(name='Test Customer').first()
        return customer.id, customer.bikes[0].id


def _add_inspection(app, status='scheduled', days_ahead=3, **extra):
    customer_id, bike_id = _ids(app)
    with app.app_context():
        inspection = Inspection(customer_id=customer_id, bike_id=bike_id, date=date.today(),
                                next_inspection_date=date.today() + timedelta(days=days_ahead),
                                status=status, **extra)
        db.session.add(inspection)
        db.session.commit()
        return inspection.id


@pytest.mark.parametrize("status", ["pending", "scheduled"])
def test_mark_completed_from_open_status(status):
    inspection = Inspection(status=status)
    inspection.mark_completed()
    assert inspection.status == "completed"


@pytest.mark.parametrize("status", ["completed", "cancelled"])
def test_mark_completed_rejects_closed_status(status):
    inspection = Inspection(status=status)
    with pytest.raises(ValueError):
        inspection.mark_completed()


def test_create_inspection_for_existing_bike(app, logged_in_client):
    customer_id, bike_id = _ids(app)
    rv = logged_in_client.post('/inspections/', json={
        'customer_id': customer_id,
        'bike_id': bike_id,
        'date': '2024-04-20',
        'inspection_value': '45',
        'labor_cost': '15.50',
        'notes': 'Brake pads replaced',
    })
    assert rv.status_code == 201
    inspection = rv.get_json()['inspection']
    assert inspection['next_inspection_date'] == '2025-04-20'
    assert inspection['status'] == 'scheduled'
    assert inspection['inspection_value'] == 45.0
    assert inspection['bike_model'] == 'Scott Scale 970'


def test_create_inspection_with_new_bike(app, logged_in_client):
    customer_id, _ = _ids(app)
    rv = logged_in_client.post('/inspections/', json={
        'customer_id': customer_id,
        'bike_model': 'Canyon Exceed',
        'bike_serial_number': 'CE123',
        'next_inspection_date': '2030-01-01',
    })
    assert rv.status_code == 201
    with app.app_context():
        assert Bike.query.filter_by(customer_id=customer_id, model='Canyon Exceed').count() == 1


def test_create_inspection_validation(app, logged_in_client):
    rv = logged_in_client.post('/inspections/', json={'bike_model': 'X'})
    assert rv.status_code == 400
    errors = rv.get_json()['errors']
    assert 'customer_id' in errors
    assert 'bike_model' in errors


def test_next_date_before_inspection_date_is_rejected(app, logged_in_client):
    customer_id, bike_id = _ids(app)
    rv = logged_in_client.post('/inspections/', json={
        'customer_id': customer_id, 'bike_id': bike_id,
        'date': '2024-05-10', 'next_inspection_date': '2024-05-01',
    })
    assert rv.status_code == 400
    assert 'next_inspection_date' in rv.get_json()['errors']


def test_bike_of_another_customer_is_rejected(app, logged_in_client):
    _, bike_id = _ids(app)
    with app.app_context():
        other = Customer(name='Someone Else')
        db.session.add(other)
        db.session.commit()
        other_id = other.id

    rv = logged_in_client.post('/inspections/', json={'customer_id': other_id, 'bike_id': bike_id})
    assert rv.status_code == 400
    assert 'bike_id' in rv.get_json()['errors']


def test_list_filters_by_status(app, logged_in_client):
    _add_inspection(app, status='pending')
    _add_inspection(app, status='completed')

    rv = logged_in_client.get('/inspections/?status=pending')
    rows = rv.get_json()['inspections']
    assert [r['status'] for r in rows] == ['pending']

    assert logged_in_client.get('/inspections/?status=bogus').status_code == 400


def test_upcoming_boundary(app, logged_in_client):
    five = _add_inspection(app, days_ahead=5)
    _add_inspection(app, days_ahead=6)
    _add_inspection(app, days_ahead=1, status='cancelled')

    rv = logged_in_client.get('/inspections/upcoming')
    body = rv.get_json()
    assert body['horizon_days'] == 5
    assert [i['id'] for i in body['inspections']] == [five]
    assert body['inspections'][0]['due_label'] == 'In 5 days'


def test_upcoming_custom_horizon(app, logged_in_client):
    _add_inspection(app, days_ahead=5)
    six = _add_inspection(app, days_ahead=6)
    rv = logged_in_client.get('/inspections/upcoming?days=6')
    assert six in [i['id'] for i in rv.get_json()['inspections']]


def test_complete_inspection(app, logged_in_client):
    inspection_id = _add_inspection(app, status='pending')

    rv = logged_in_client.post(f'/inspections/{inspection_id}/complete')
    assert rv.status_code == 200
    assert rv.get_json()['inspection']['status'] == 'completed'

    rv = logged_in_client.post(f'/inspections/{inspection_id}/complete')
    assert rv.status_code == 400


def test_edit_inspection_checks_stored_dates(app, logged_in_client):
    inspection_id = _add_inspection(app, days_ahead=30)
    too_early = (date.today() - timedelta(days=1)).isoformat()

    rv = logged_in_client.post(f'/inspections/{inspection_id}/edit', json={'next_inspection_date': too_early})
    assert rv.status_code == 400

    rv = logged_in_client.post(f'/inspections/{inspection_id}/edit', json={'status': 'cancelled', 'notes': 'Sold the bike'})
    assert rv.status_code == 200
    body = rv.get_json()['inspection']
    assert body['status'] == 'cancelled'
    assert body['notes'] == 'Sold the bike'


def test_inspection_detail(app, logged_in_client):
    inspection_id = _add_inspection(app, days_ahead=0)
    rv = logged_in_client.get(f'/inspections/{inspection_id}')
    assert rv.get_json()['inspection']['due_label'] == 'Today'
    assert logged_in_client.get('/inspections/9999').status_code == 404


def test_future_lookup(app, logged_in_client):
    customer_id, bike_id = _ids(app)
    rv = logged_in_client.get(f'/inspections/future?customer_id={customer_id}&bike_id={bike_id}')
    assert rv.get_json()['exists'] is False

    inspection_id = _add_inspection(app, days_ahead=40)
    rv = logged_in_client.get(f'/inspections/future?customer_id={customer_id}&bike_id={bike_id}')
    body = rv.get_json()
    assert body['exists'] is True
    assert body['inspection']['id'] == inspection_id


def test_reminder_email(app, logged_in_client, fake_smtp, smtp_config):
    inspection_id = _add_inspection(app, days_ahead=5)
    rv = logged_in_client.post(f'/inspections/{inspection_id}/reminder-email')
    assert rv.status_code == 200
    message = fake_smtp.sent[0]
    assert 'Scott Scale 970' in message['Subject']


def test_reminder_email_without_smtp(app, logged_in_client):
    inspection_id = _add_inspection(app, days_ahead=5)
    rv = logged_in_client.post(f'/inspections/{inspection_id}/reminder-email')
    assert rv.status_code == 400
    assert rv.get_json()['message'] == 'Please configure SMTP settings first'
