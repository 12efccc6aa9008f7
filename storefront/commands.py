"""Flask CLI commands."""

import click
from flask import Flask
from .extensions import db


def register_commands(app: Flask):
    """Register CLI commands with the application."""
    
    @app.cli.command('run-due-tasks')
    def run_due_tasks_command():
        """Run scheduled tasks that are due (e.g. from cron)."""
        from .services.tasks import run_due_tasks
        completed = run_due_tasks()
        click.echo(f'Completed {completed} task(s).')
    
    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables without migrations."""
        db.create_all()
        click.echo('Database tables created.')
