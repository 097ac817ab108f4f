#!/usr/bin/env python3
"""Application entry point"""
import os
import sys
from sqlalchemy.exc import SQLAlchemyError

def init_database():
    """Initialize the database"""
    from coopledger import create_app, db
    from coopledger.models import SystemSettings
    app = create_app(os.getenv('FLASK_ENV') or 'development')
    with app.app_context():
        db.create_all()
        SystemSettings.get_settings()
        print("Database initialized!")

def create_admin_user():
    """Create an admin user"""
    from coopledger import create_app, db
    from coopledger.models import User, SystemSettings

    app = create_app(os.getenv('FLASK_ENV') or 'development')

    with app.app_context():
        # Create tables if they don't exist
        db.create_all()

        # Check if admin already exists
        existing_admin = User.query.filter_by(username='admin').first()
        if existing_admin:
            print("Admin user already exists!")
            return

        password = os.getenv('ADMIN_PASSWORD') or 'admin123'
        admin = User(
            username='admin',
            email=os.getenv('ADMIN_EMAIL') or 'admin@coopledger.local',
            full_name='System Administrator',
            role='admin',
            is_active=True
        )
        admin.set_password(password)
        db.session.add(admin)

        try:
            db.session.commit()
            # Create default system settings if not exists
            SystemSettings.get_settings()
            print("Admin user created successfully!")
            print("Username: admin")
            print("Please change the password after first login!")
        except SQLAlchemyError as e:
            db.session.rollback()
            print("Error: {}".format(e))
            sys.exit(1)

if __name__ == '__main__':
    # Handle command-line arguments
    if len(sys.argv) > 1:
        command = sys.argv[1]
        if command == 'create-admin':
            create_admin_user()
        elif command == 'init-db':
            init_database()
        else:
            print("Unknown command: {}".format(command))
            print("Available commands: create-admin, init-db")
            sys.exit(1)
    else:
        # Run the Flask development server
        from coopledger import create_app
        app = create_app(os.getenv('FLASK_ENV') or 'development')
        app.run(host='0.0.0.0', port=5000, debug=app.config['DEBUG'])
