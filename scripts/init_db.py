#!/usr/bin/env python
"""
Database initialization script

Usage:
    python scripts/init_db.py init         # Initialize database with tables
    python scripts/init_db.py reset        # Reset database (development only)
    python scripts/init_db.py create-user  # Create a new user
    python scripts/init_db.py seed         # Load demo customers and inspections
"""
import os
import sys
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

if (Path(__file__).parent.parent / '.env').exists():
    from dotenv import load_dotenv
    load_dotenv(Path(__file__).parent.parent / '.env')


DEMO_CUSTOMERS = [
    ("João Silva", "joao.silva@email.com", "912345678", "1985-06-15", "Rua das Flores 123, Lisboa"),
    ("Maria Santos", "maria.santos@email.com", "931234567", "1990-03-22", "Av. da Liberdade 45, Porto"),
    ("Pedro Costa", "pedro.costa@email.com", "961234567", "1978-11-05", "Rua do Comércio 67, Braga"),
    ("Ana Ferreira", "ana.ferreira@email.com", "917654321", "1982-09-30", "Praça da Alegria 12, Coimbra"),
    ("Rui Oliveira", "rui.oliveira@email.com", "926543210", "1995-12-12", "Rua dos Clérigos 89, Porto"),
]

# (customer index, bike model, serial, date, next date, status, notes, value)
DEMO_INSPECTIONS = [
    (0, "Scott Scale 970", "SC97023451", "2024-04-20", "2025-04-20", "completed",
     "Brake pads replaced, gears adjusted", "45"),
    (1, "Trek Marlin 7", "TM7123456", "2024-05-01", "2025-05-01", "completed",
     "Full service, chain replaced", "60"),
    (2, "Specialized Rockhopper", "SR78901234", "2024-05-10", "2025-05-10", "scheduled", None, "35"),
    (3, "Cube Attention", "CA45678901", "2023-06-15", "2024-06-15", "pending",
     "Customer needs to be contacted to book", None),
    (0, "Canyon Exceed", "CE12345678", "2023-11-03", "2024-11-03", "pending", None, None),
]


def _day(value):
    return datetime.strptime(value, "%Y-%m-%d").date()


def init_database():
    """Initialize database with tables"""
    from bikeshop import create_app
    from bikeshop.extensions import db

    app = create_app()
    with app.app_context():
        print("Creating database tables...")
        db.create_all()
        print("✓ Database tables created successfully")


def reset_database():
    """Reset database (development only)"""
    from bikeshop import create_app, initialize_database
    from bikeshop.extensions import db

    env = os.environ.get('FLASK_ENV', 'development')
    if env == 'production':
        print("❌ Cannot reset database in production!")
        sys.exit(1)

    confirm = input("⚠️  This will delete all data. Type 'yes' to confirm: ")
    if confirm.lower() != 'yes':
        print("Reset cancelled")
        return

    app = create_app()
    with app.app_context():
        print("Dropping all tables...")
        db.drop_all()
        print("✓ All tables dropped")

        print("Creating new tables...")
        db.create_all()
        initialize_database()
        print("✓ Database reset successfully")


def create_user():
    """Create a new user"""
    from bikeshop import create_app
    from bikeshop.models.user import User, ROLES
    from bikeshop.extensions import db

    app = create_app()
    with app.app_context():
        username = input("Username: ").strip()
        if not username:
            print("❌ Username cannot be empty")
            return

        if User.query.filter_by(username=username).first():
            print(f"❌ User '{username}' already exists")
            return

        full_name = input("Full Name: ").strip()
        password = input("Password: ").strip()

        if not password:
            print("❌ Password cannot be empty")
            return

        print("\nAvailable roles:")
        role_names = list(ROLES)
        for number, name in enumerate(role_names, start=1):
            print(f"  {number}. {name} - {ROLES[name]}")

        role_choice = input(f"Select role (1-{len(role_names)}) [default: STAFF]: ").strip()
        choices = {str(number): name for number, name in enumerate(role_names, start=1)}
        role = choices.get(role_choice, 'STAFF')

        user = User(username=username, full_name=full_name or username, role=role)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()

        print(f"✓ User '{username}' created successfully with role '{role}'")


def seed_database():
    """Load demo customers, bikes and inspections (skipped when customers exist)"""
    from bikeshop import create_app
    from bikeshop.extensions import db
    from bikeshop.models import Bike, Customer, Inspection
    from bikeshop.services.notification_service import NotificationService

    app = create_app()
    with app.app_context():
        if Customer.query.count():
            print("Customers already present, nothing to seed")
            return

        customers = []
        for name, email, phone, birthdate, address in DEMO_CUSTOMERS:
            customer = Customer(name=name, email=email, phone=phone, birthdate=_day(birthdate), address=address)
            db.session.add(customer)
            customers.append(customer)
        db.session.flush()

        for index, model, serial, when, due, status, notes, value in DEMO_INSPECTIONS:
            bike = Bike(customer_id=customers[index].id, model=model, serial_number=serial)
            db.session.add(bike)
            db.session.flush()
            db.session.add(Inspection(
                customer_id=customers[index].id,
                bike_id=bike.id,
                date=_day(when),
                next_inspection_date=_day(due),
                status=status,
                notes=notes,
                inspection_value=Decimal(value) if value else None,
            ))
        db.session.commit()

        NotificationService.create(
            title="Demo data loaded",
            message=f"{len(customers)} customers and {len(DEMO_INSPECTIONS)} inspections added on {date.today()}.",
            type="system",
        )
        print(f"✓ Seeded {len(customers)} customers and {len(DEMO_INSPECTIONS)} inspections")


def main():
    """Main entry point"""
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    command = sys.argv[1].lower()

    if command == 'init':
        init_database()
    elif command == 'reset':
        reset_database()
    elif command == 'create-user':
        create_user()
    elif command == 'seed':
        seed_database()
    else:
        print(f"❌ Unknown command: {command}")
        print(__doc__)
        sys.exit(1)


if __name__ == '__main__':
    main()
