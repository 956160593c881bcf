import click

from bookify.db import db
from bookify.models.user import User
from bookify.utils.auth import hash_password


def register_cli(app):
    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables that do not exist yet."""
        db.create_all()
        click.echo("Database ready")

    @app.cli.command('create-admin')
    @click.option('--name', required=True)
    @click.option('--email', required=True)
    @click.option('--password', required=True, prompt=True, hide_input=True, confirmation_prompt=True)
    def create_admin_command(name, email, password):
        """Create an admin account, or promote the account that owns EMAIL."""
        email = email.strip().lower()
        user = User.query.filter_by(email=email).first()
        if user:
            user.role = 'admin'
            click.echo(f"Promoted {email} to admin")
        else:
            user = User(name=name.strip(), email=email, password=hash_password(password), role='admin')
            db.session.add(user)
            click.echo(f"Created admin {email}")
        db.session.commit()
